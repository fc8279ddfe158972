"""Startup connectivity checks for the configured providers."""

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from alliance.providers.base import AIProvider

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 15.0


@dataclass(frozen=True)
class HealthStatus:
    provider: str
    ok: bool
    error: str = ""
    latency_ms: float = 0.0


async def _probe(name: str, provider: AIProvider) -> HealthStatus:
    start = time.monotonic()
    try:
        await asyncio.wait_for(provider.health_check(), timeout=_TIMEOUT_SEC)
    except TimeoutError:
        logger.warning("Provider %s health check timed out after %.0fs", name, _TIMEOUT_SEC)
        return HealthStatus(name, False, f"Health check timed out after {_TIMEOUT_SEC:.0f}s")
    except Exception as exc:
        logger.warning("Provider %s health check failed: %s", name, exc)
        return HealthStatus(name, False, str(exc))
    return HealthStatus(name, True, latency_ms=(time.monotonic() - start) * 1000.0)


async def run_health_checks(providers: Mapping[str, AIProvider]) -> dict[str, HealthStatus]:
    """Probe every provider concurrently. Never raises; failures are reported per provider."""
    statuses = await asyncio.gather(*(_probe(n, p) for n, p in providers.items()))
    return {s.provider: s for s in statuses}


def healthy_only(
    providers: Mapping[str, AIProvider],
    statuses: Mapping[str, HealthStatus],
) -> dict[str, AIProvider]:
    """Subset of ``providers`` whose probe succeeded."""
    return {n: p for n, p in providers.items() if n in statuses and statuses[n].ok}
