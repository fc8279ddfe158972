"""Query lifecycle events published to external observers."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from alliance.models import ConsensusResult, Query

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    QUERY_STARTED = "query_started"
    QUERY_COMPLETED = "query_completed"
    QUERY_FAILED = "query_failed"


@dataclass(frozen=True)
class QueryEvent:
    kind: EventKind
    query: Query
    result: ConsensusResult | None = None
    error: BaseException | None = None


QueryListener = Callable[[QueryEvent], None]


def publish(listeners: Iterable[QueryListener], event: QueryEvent) -> None:
    """Deliver an event to every listener. A failing listener never affects the query."""
    for listener in listeners:
        try:
            listener(event)
        except Exception as exc:
            logger.warning("Listener %r failed on %s: %s", listener, event.kind.value, exc)
