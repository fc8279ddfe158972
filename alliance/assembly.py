"""Package the terminal state of a query into a ConsensusResult."""

import time
from collections.abc import Sequence

from alliance.models import ConsensusResult, DebateRound, ModelResponse, ResultMetadata
from alliance.synthesis import SynthesisResult


def _sum_tokens(responses: Sequence[ModelResponse]) -> int:
    return sum(r.tokens.total for r in responses)


def _sum_cost(responses: Sequence[ModelResponse]) -> float:
    return sum(r.cost for r in responses)


def select_dissenting(responses: Sequence[ModelResponse], threshold: float) -> list[ModelResponse]:
    """Responses whose confidence is strictly below the active threshold."""
    return [r for r in responses if r.confidence < threshold]


def assemble_result(
    *,
    decision: SynthesisResult,
    final_responses: Sequence[ModelResponse],
    agreement: float,
    threshold: float,
    participants: Sequence[str],
    rounds: Sequence[DebateRound],
    show_debate: bool,
    start_time: float,
    all_batches: Sequence[Sequence[ModelResponse]] = (),
    cancelled: bool = False,
) -> ConsensusResult:
    """Build the externally visible result.

    Args:
        decision: Synthesis over ``final_responses``.
        final_responses: The batch that produced the decision. Token and cost
            totals are summed over this batch only.
        agreement: Agreement of ``final_responses``.
        threshold: Voting threshold in force for the query.
        participants: Providers configured when the query started.
        rounds: Debate rounds executed (Round-0 excluded).
        show_debate: Include ``rounds`` as the trace; otherwise ``debate`` is None.
        start_time: ``time.monotonic()`` at query start.
        all_batches: Every batch of the query, for cumulative accounting.
        cancelled: True if cancellation stopped the debate early.
    """
    batches = list(all_batches) or [final_responses]
    metadata = ResultMetadata(
        total_tokens=_sum_tokens(final_responses),
        total_cost=_sum_cost(final_responses),
        processing_time_ms=(time.monotonic() - start_time) * 1000.0,
        rounds=len(rounds),
        cumulative_tokens=sum(_sum_tokens(b) for b in batches),
        cumulative_cost=sum(_sum_cost(b) for b in batches),
        cancelled=cancelled,
    )
    return ConsensusResult(
        decision=decision.decision,
        confidence=decision.confidence,
        agreement=agreement,
        participants=list(participants),
        reasoning=decision.reasoning,
        dissenting=select_dissenting(final_responses, threshold),
        methodology=decision.methodology,
        metadata=metadata,
        debate=list(rounds) if show_debate else None,
    )
