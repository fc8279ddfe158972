"""Debate orchestration: parallel provider calls, critique rounds, consensus."""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from config.config_loader import DEFAULT_DEBATE_TEMPLATE, AppConfig, PromptsConfig
from alliance.agreement import estimate_agreement
from alliance.assembly import assemble_result
from alliance.errors import AllProvidersFailedError, ConfigurationError
from alliance.events import EventKind, QueryEvent, QueryListener, publish
from alliance.healthcheck import run_health_checks
from alliance.models import CollaborationMode, ConsensusResult, DebateRound, ModelResponse, Query
from alliance.providers.base import AIProvider, ProviderError
from alliance.synthesis import SynthesisResult, resolve_mode, synthesize

logger = logging.getLogger(__name__)

# Quality gate: warn when fewer than this many models respond in Round 0
_MIN_QUALITY_RESPONSES = 3


@dataclass
class DebateOutcome:
    """State of a query when the debate loop concludes."""

    responses: list[ModelResponse]
    agreement: float
    rounds: list[DebateRound] = field(default_factory=list)
    batches: list[list[ModelResponse]] = field(default_factory=list)
    cancelled: bool = False


async def _call_provider(
    provider: AIProvider,
    query: Query,
    round_number: int,
    timeout_ms: int,
) -> ModelResponse | ProviderError:
    """Call a single provider under a per-call deadline.

    Never raises; returns ProviderError on failure. There is no retry.
    """
    try:
        call = provider.generate(query, round_number)
        if timeout_ms > 0:
            return await asyncio.wait_for(call, timeout=timeout_ms / 1000.0)
        return await call
    except TimeoutError:
        err = ProviderError(provider.name(), f"Timed out after {timeout_ms}ms")
        logger.warning("Provider %s timed out in round %d after %dms", provider.name(), round_number, timeout_ms)
        return err
    except ProviderError as exc:
        logger.warning("Provider %s failed in round %d: %s", provider.name(), round_number, exc)
        return exc
    except Exception as exc:
        err = ProviderError(provider.name(), f"Unexpected error: {exc}")
        logger.warning("Provider %s unexpected failure in round %d: %s", provider.name(), round_number, exc)
        return err


async def gather_responses(
    providers: Sequence[AIProvider],
    query: Query,
    round_number: int,
    timeout_ms: int,
) -> list[ModelResponse]:
    """Fan a query out to every provider and keep the successful responses.

    Raises:
        AllProvidersFailedError: If no provider produced a response.
    """
    logger.info("Starting round %d with %d providers", round_number, len(providers))

    results = await asyncio.gather(
        *(_call_provider(p, query, round_number, timeout_ms) for p in providers)
    )

    responses = [r for r in results if isinstance(r, ModelResponse)]
    errors = [r for r in results if isinstance(r, ProviderError)]

    if not responses:
        raise AllProvidersFailedError(round_number, errors)

    logger.info(
        "Round %d complete: %d/%d providers succeeded",
        round_number,
        len(responses),
        len(providers),
    )
    return responses


def build_debate_prompt(
    query: Query,
    responses: Sequence[ModelResponse],
    round_number: int,
    template: str = DEFAULT_DEBATE_TEMPLATE,
) -> str:
    """Expose every current perspective, labelled by provider, to all providers."""
    perspectives = "\n\n".join(
        f"Perspective {i} ({r.provider}): {r.content}\nReasoning: {r.reasoning}"
        for i, r in enumerate(responses, start=1)
    )
    context_block = f"Context: {query.context}\n" if query.context else ""
    return template.format(
        question=query.prompt,
        context_block=context_block,
        perspectives=perspectives,
        round=round_number,
    )


async def run_debate(
    query: Query,
    providers: Sequence[AIProvider],
    initial_responses: list[ModelResponse],
    *,
    threshold: float,
    max_rounds: int,
    mode: CollaborationMode,
    timeout_ms: int,
    template: str = DEFAULT_DEBATE_TEMPLATE,
    cancel: asyncio.Event | None = None,
    on_round_complete: Callable[[DebateRound], None] | None = None,
) -> DebateOutcome:
    """Run critique rounds until agreement reaches the threshold or the budget is spent.

    Args:
        query: The caller's query; its prompt and context seed every round.
        providers: Providers to re-query each round.
        initial_responses: Round-0 batch.
        threshold: Agreement at or above which the debate concludes.
        max_rounds: Debate round budget (Round-0 not counted).
        mode: Collaboration mode used for each round's synthesis note.
        timeout_ms: Per-call deadline; 0 disables it.
        template: Debate prompt template.
        cancel: When set, no further round is started.
        on_round_complete: Optional callback invoked after each round completes.

    Raises:
        AllProvidersFailedError: If all providers fail in a round.
    """
    participants = [p.name() for p in providers]
    current = initial_responses
    agreement = estimate_agreement(current)
    outcome = DebateOutcome(responses=current, agreement=agreement, batches=[current])

    logger.info("Initial agreement: %.3f, threshold: %.3f", agreement, threshold)

    round_number = 0
    while agreement < threshold and round_number < max_rounds:
        if cancel is not None and cancel.is_set():
            logger.info("Cancellation requested, concluding after %d debate rounds", round_number)
            outcome.cancelled = True
            break

        round_number += 1
        prompt = build_debate_prompt(query, current, round_number, template)
        logger.debug("Round %d prompt preview: %s", round_number, prompt[:200])

        round_query = Query(prompt=prompt, timeout_ms=query.timeout_ms)
        current = await gather_responses(providers, round_query, round_number, timeout_ms)
        agreement = estimate_agreement(current)

        debate_round = DebateRound(
            number=round_number,
            participants=participants,
            responses=current,
            synthesis=synthesize(current, mode).reasoning,
            agreement=agreement,
        )
        outcome.rounds.append(debate_round)
        outcome.batches.append(current)

        logger.info("Round %d agreement: %.3f", round_number, agreement)

        if on_round_complete:
            on_round_complete(debate_round)

    outcome.responses = current
    outcome.agreement = agreement
    return outcome


def _best_response(responses: Sequence[ModelResponse]) -> ModelResponse:
    return max(responses, key=lambda r: r.confidence)


class Council:
    """Multi-provider consensus coordinator.

    Holds an immutable provider registry built once at startup. Each call to
    :meth:`query` owns its own rounds; nothing is shared between queries.
    """

    def __init__(
        self,
        providers: Mapping[str, AIProvider],
        *,
        collaboration_mode: CollaborationMode | str = CollaborationMode.DEMOCRATIC_CONSENSUS,
        voting_threshold: float = 0.7,
        max_debate_rounds: int = 3,
        timeout_ms: int = 30000,
        prompts: PromptsConfig | None = None,
        listeners: Iterable[QueryListener] = (),
    ) -> None:
        if not providers:
            raise ConfigurationError("At least one LLM provider must be configured")
        self._providers: Mapping[str, AIProvider] = MappingProxyType(dict(providers))
        self._mode = resolve_mode(collaboration_mode)
        self._threshold = voting_threshold
        self._max_rounds = max_debate_rounds
        self._timeout_ms = timeout_ms
        self._prompts = prompts or PromptsConfig()
        self._listeners: tuple[QueryListener, ...] = tuple(listeners)

        logger.info(
            "Council initialized: providers=%s mode=%s threshold=%.2f max_rounds=%d",
            list(self._providers),
            self._mode.value,
            self._threshold,
            self._max_rounds,
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        providers: Mapping[str, AIProvider],
        listeners: Iterable[QueryListener] = (),
    ) -> "Council":
        return cls(
            providers,
            collaboration_mode=config.defaults.collaboration_mode,
            voting_threshold=config.defaults.voting_threshold,
            max_debate_rounds=config.defaults.max_debate_rounds,
            timeout_ms=config.defaults.timeout_ms,
            prompts=config.prompts,
            listeners=listeners,
        )

    @property
    def providers(self) -> Mapping[str, AIProvider]:
        return self._providers

    @property
    def collaboration_mode(self) -> CollaborationMode:
        return self._mode

    async def query(
        self,
        query: Query,
        *,
        cancel: asyncio.Event | None = None,
        on_round_complete: Callable[[DebateRound], None] | None = None,
    ) -> ConsensusResult:
        """Answer a query, debating until the providers agree or the budget runs out.

        Raises:
            AllProvidersFailedError: If every provider fails in some round.
        """
        start = time.monotonic()
        publish(self._listeners, QueryEvent(EventKind.QUERY_STARTED, query))

        try:
            result = await self._run(query, start, cancel, on_round_complete)
        except Exception as exc:
            logger.error("Query processing failed: %s", exc)
            publish(self._listeners, QueryEvent(EventKind.QUERY_FAILED, query, error=exc))
            raise

        publish(self._listeners, QueryEvent(EventKind.QUERY_COMPLETED, query, result=result))
        return result

    async def _run(
        self,
        query: Query,
        start: float,
        cancel: asyncio.Event | None,
        on_round_complete: Callable[[DebateRound], None] | None,
    ) -> ConsensusResult:
        # Explicit zeros are honoured; only None falls back to the defaults.
        threshold = self._threshold if query.voting_threshold is None else query.voting_threshold
        max_rounds = self._max_rounds if query.max_debate_rounds is None else query.max_debate_rounds
        timeout_ms = self._timeout_ms if query.timeout_ms is None else query.timeout_ms

        participants = list(self._providers)
        providers = list(self._providers.values())

        logger.info(
            "Processing query: %r (consensus=%s)",
            query.prompt[:100],
            query.require_consensus,
        )

        initial = await gather_responses(providers, query, 0, timeout_ms)

        if len(providers) >= _MIN_QUALITY_RESPONSES and len(initial) < _MIN_QUALITY_RESPONSES:
            logger.warning(
                "Only %d/%d models responded initially. Consensus quality is degraded.",
                len(initial),
                len(providers),
            )

        if not query.require_consensus:
            best = _best_response(initial)
            return assemble_result(
                decision=SynthesisResult(
                    decision=best.content,
                    confidence=best.confidence,
                    reasoning=best.reasoning,
                    methodology="best_response",
                ),
                final_responses=initial,
                agreement=estimate_agreement(initial),
                threshold=threshold,
                participants=participants,
                rounds=[],
                show_debate=query.show_debate,
                start_time=start,
            )

        outcome = await run_debate(
            query,
            providers,
            initial,
            threshold=threshold,
            max_rounds=max_rounds,
            mode=self._mode,
            timeout_ms=timeout_ms,
            template=self._prompts.debate,
            cancel=cancel,
            on_round_complete=on_round_complete,
        )

        decision = synthesize(outcome.responses, self._mode)
        return assemble_result(
            decision=decision,
            final_responses=outcome.responses,
            agreement=outcome.agreement,
            threshold=threshold,
            participants=participants,
            rounds=outcome.rounds,
            show_debate=query.show_debate,
            start_time=start,
            all_batches=outcome.batches,
            cancelled=outcome.cancelled,
        )

    async def health_check(self) -> dict[str, bool]:
        """Ping every provider; returns name -> healthy."""
        statuses = await run_health_checks(self._providers)
        return {name: status.ok for name, status in statuses.items()}

    def describe(self) -> dict[str, Any]:
        return {
            "providers": list(self._providers),
            "collaboration_mode": self._mode.value,
            "voting_threshold": self._threshold,
            "max_debate_rounds": self._max_rounds,
            "timeout_ms": self._timeout_ms,
        }
