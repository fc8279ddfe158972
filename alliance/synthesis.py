"""Reduce a batch of responses to one decision under a collaboration mode."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from alliance.errors import UnsupportedStrategyError
from alliance.models import CollaborationMode, ModelResponse

logger = logging.getLogger(__name__)

_MAX_EXCERPTS = 3
_MAX_ADVISORS = 3
_DIVERGENCE_GAP = 0.2


@dataclass(frozen=True)
class SynthesisResult:
    decision: str
    confidence: float
    reasoning: str
    methodology: str


@dataclass(frozen=True)
class DecisionEvaluation:
    quality: float
    reasoning: str
    improvements: list[str] = field(default_factory=list)


def _mean_confidence(responses: Sequence[ModelResponse]) -> float:
    return sum(r.confidence for r in responses) / len(responses)


def _key_points(responses: Sequence[ModelResponse]) -> list[str]:
    """Distinct sentence excerpts across all responses, in first-seen order."""
    seen: dict[str, None] = {}
    for resp in responses:
        for sentence in resp.content.split("."):
            sentence = sentence.strip()
            if len(sentence) > 10:
                seen.setdefault(sentence, None)
    return list(seen)[:_MAX_EXCERPTS]


def _compose(base: ModelResponse, responses: Sequence[ModelResponse], label: str) -> str:
    text = f"Based on {label} analysis of {len(responses)} expert perspectives: {base.content}"
    points = _key_points(responses)
    if points:
        text += f"\n\nAdditional considerations: {'; '.join(points)}."
    return text


def _democratic_consensus(responses: Sequence[ModelResponse]) -> SynthesisResult:
    avg = _mean_confidence(responses)
    representative = min(responses, key=lambda r: abs(r.confidence - avg))
    return SynthesisResult(
        decision=_compose(representative, responses, "democratic"),
        confidence=avg,
        reasoning=(
            f"Democratic consensus reached with {len(responses)} participants. "
            f"Selected response from {representative.provider} as it best represents "
            f"the group consensus (confidence: {representative.confidence:.2f})."
        ),
        methodology=CollaborationMode.DEMOCRATIC_CONSENSUS.value,
    )


def _expertise_weighted(responses: Sequence[ModelResponse]) -> SynthesisResult:
    # Self-reported confidence doubles as the expertise weight.
    total_weight = sum(r.confidence for r in responses)
    weighted = sum(r.confidence * r.confidence for r in responses) / total_weight if total_weight else 0.0
    expert = max(responses, key=lambda r: r.confidence)
    return SynthesisResult(
        decision=_compose(expert, responses, "weighted"),
        confidence=weighted,
        reasoning=(
            f"Expertise-weighted decision prioritizing {expert.provider} "
            f"(confidence: {expert.confidence:.2f}). "
            f"Weighted average confidence: {weighted:.2f}."
        ),
        methodology=CollaborationMode.EXPERTISE_WEIGHTED.value,
    )


def _hierarchical(responses: Sequence[ModelResponse]) -> SynthesisResult:
    ranked = sorted(responses, key=lambda r: r.confidence, reverse=True)
    executive, advisors = ranked[0], ranked[1:1 + _MAX_ADVISORS]

    decision = f"Executive Decision: {executive.content}"
    if advisors:
        insights = "; ".join(f"{a.provider}: {a.reasoning}" for a in advisors)
        decision += f"\n\nAdvisory Input: {insights}"

    return SynthesisResult(
        decision=decision,
        confidence=executive.confidence,
        reasoning=(
            f"Hierarchical decision with {executive.provider} as executive "
            f"(confidence: {executive.confidence:.2f}). "
            f"Incorporated insights from {len(responses) - 1} advisory models."
        ),
        methodology=CollaborationMode.HIERARCHICAL.value,
    )


def _debate_synthesis(responses: Sequence[ModelResponse]) -> SynthesisResult:
    ranked = sorted(responses, key=lambda r: r.confidence, reverse=True)
    primary = ranked[0]
    alternative = next(
        (r for r in ranked[1:] if abs(r.confidence - primary.confidence) > _DIVERGENCE_GAP),
        ranked[1] if len(ranked) > 1 else None,
    )

    decision = f"Synthesis of Perspectives:\n\nPrimary Position ({primary.provider}): {primary.content}\n\n"
    if alternative is not None:
        decision += f"Alternative View ({alternative.provider}): {alternative.content}\n\n"
    decision += (
        "Balanced Conclusion: Considering all viewpoints, the optimal approach "
        "incorporates elements from both perspectives while prioritizing "
        "the higher-confidence insights."
    )

    other_conf = alternative.confidence if alternative is not None else primary.confidence
    confidence = (primary.confidence + other_conf) / 2
    if alternative is not None:
        versus = f"{alternative.provider} ({alternative.confidence:.2f})"
    else:
        versus = "consensus (N/A)"

    return SynthesisResult(
        decision=decision,
        confidence=confidence,
        reasoning=(
            f"Debate synthesis between {primary.provider} ({primary.confidence:.2f}) "
            f"and {versus}. Considered all {len(responses)} perspectives."
        ),
        methodology=CollaborationMode.DEBATE_SYNTHESIS.value,
    )


STRATEGIES: dict[CollaborationMode, Callable[[Sequence[ModelResponse]], SynthesisResult]] = {
    CollaborationMode.DEMOCRATIC_CONSENSUS: _democratic_consensus,
    CollaborationMode.EXPERTISE_WEIGHTED: _expertise_weighted,
    CollaborationMode.HIERARCHICAL: _hierarchical,
    CollaborationMode.DEBATE_SYNTHESIS: _debate_synthesis,
}


def resolve_mode(mode: CollaborationMode | str) -> CollaborationMode:
    """Normalize a mode name, raising UnsupportedStrategyError for anything unknown."""
    if isinstance(mode, CollaborationMode):
        return mode
    try:
        return CollaborationMode(str(mode).strip().lower())
    except ValueError:
        raise UnsupportedStrategyError(mode) from None


def synthesize(
    responses: Sequence[ModelResponse],
    mode: CollaborationMode | str,
) -> SynthesisResult:
    """Synthesize multiple responses into a single decision.

    Raises:
        UnsupportedStrategyError: If ``mode`` is not a known collaboration mode.
        ValueError: If ``responses`` is empty.
    """
    resolved = resolve_mode(mode)
    if not responses:
        raise ValueError("Cannot synthesize an empty response batch")

    logger.info("Synthesizing %d responses using %s mode", len(responses), resolved.value)
    return STRATEGIES[resolved](responses)


def _diversity(responses: Sequence[ModelResponse]) -> float:
    if len(responses) <= 1:
        return 0.0
    avg = _mean_confidence(responses)
    variance = sum((r.confidence - avg) ** 2 for r in responses) / len(responses)
    return min(1.0, variance * 2)


def _consensus_score(responses: Sequence[ModelResponse]) -> float:
    if len(responses) <= 1:
        return 1.0
    avg = _mean_confidence(responses)
    mean_deviation = sum(abs(r.confidence - avg) for r in responses) / len(responses)
    return max(0.0, 1 - mean_deviation)


def evaluate_decision(
    decision: SynthesisResult,
    responses: Sequence[ModelResponse],
) -> DecisionEvaluation:
    """Advisory quality score for a synthesized decision."""
    quality = (
        decision.confidence * 0.4
        + _diversity(responses) * 0.3
        + _consensus_score(responses) * 0.3
    )

    improvements: list[str] = []
    if decision.confidence < 0.7:
        improvements.append("Consider gathering more expert input")
    if len(responses) < 3:
        improvements.append("Increase number of participating models")

    return DecisionEvaluation(
        quality=quality,
        reasoning=(
            f"Decision quality score: {quality:.2f} based on "
            f"confidence ({decision.confidence:.2f}) and "
            f"methodology ({decision.methodology})."
        ),
        improvements=improvements,
    )
