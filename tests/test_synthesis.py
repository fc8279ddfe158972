"""Tests for alliance/synthesis.py."""

import pytest

from alliance.errors import UnsupportedStrategyError
from alliance.models import CollaborationMode
from alliance.synthesis import SynthesisResult, evaluate_decision, resolve_mode, synthesize
from tests.conftest import make_response


def test_democratic_picks_response_closest_to_mean():
    responses = [
        make_response("a", 0.9, "Use Postgres for everything."),
        make_response("b", 0.6, "Use Mongo for documents."),
        make_response("c", 0.75, "Use Postgres with JSONB columns."),
    ]

    result = synthesize(responses, CollaborationMode.DEMOCRATIC_CONSENSUS)

    assert result.methodology == "democratic_consensus"
    assert result.confidence == pytest.approx(0.75)
    assert result.decision.startswith(
        "Based on democratic analysis of 3 expert perspectives: Use Postgres with JSONB columns."
    )
    assert "Selected response from c" in result.reasoning


def test_decision_lists_distinct_key_points():
    responses = [make_response("a", 0.8), make_response("b", 0.8), make_response("c", 0.8)]

    result = synthesize(responses, "democratic_consensus")

    assert result.decision.endswith(
        "Additional considerations: Answer from a; It is well considered; Answer from b."
    )


def test_expertise_weighted_confidence():
    responses = [make_response("a", 0.9), make_response("b", 0.6)]

    result = synthesize(responses, CollaborationMode.EXPERTISE_WEIGHTED)

    # (0.81 + 0.36) / 1.5
    assert result.confidence == pytest.approx(0.78)
    assert "Based on weighted analysis of 2 expert perspectives: Answer from a." in result.decision
    assert "prioritizing a" in result.reasoning


def test_expertise_weighted_zero_weights():
    responses = [make_response("a", 0.0), make_response("b", 0.0)]
    result = synthesize(responses, CollaborationMode.EXPERTISE_WEIGHTED)
    assert result.confidence == 0.0


def test_hierarchical_executive_and_top_three_advisors():
    responses = [
        make_response("b", 0.6),
        make_response("a", 0.9, "Ship the monolith first."),
        make_response("c", 0.7),
        make_response("d", 0.5),
        make_response("e", 0.4),
    ]

    result = synthesize(responses, CollaborationMode.HIERARCHICAL)

    assert result.confidence == 0.9
    assert result.decision.startswith("Executive Decision: Ship the monolith first.")
    assert (
        "Advisory Input: c: Reasoning from c.; b: Reasoning from b.; d: Reasoning from d."
        in result.decision
    )
    assert "e:" not in result.decision
    assert "Incorporated insights from 4 advisory models." in result.reasoning


def test_hierarchical_single_response_has_no_advisors():
    result = synthesize([make_response("a", 0.7)], CollaborationMode.HIERARCHICAL)
    assert "Advisory Input" not in result.decision


def test_debate_synthesis_prefers_divergent_alternative():
    responses = [
        make_response("a", 0.9, "Go serverless."),
        make_response("b", 0.8, "Go serverless, carefully."),
        make_response("c", 0.5, "Stay on VMs."),
    ]

    result = synthesize(responses, CollaborationMode.DEBATE_SYNTHESIS)

    assert result.confidence == pytest.approx(0.7)
    assert "Primary Position (a): Go serverless." in result.decision
    assert "Alternative View (c): Stay on VMs." in result.decision
    assert result.decision.endswith("prioritizing the higher-confidence insights.")


def test_debate_synthesis_falls_back_to_runner_up():
    responses = [make_response("a", 0.9), make_response("b", 0.8), make_response("c", 0.75)]

    result = synthesize(responses, CollaborationMode.DEBATE_SYNTHESIS)

    assert result.confidence == pytest.approx(0.85)
    assert "Alternative View (b)" in result.decision


def test_debate_synthesis_single_response():
    result = synthesize([make_response("a", 0.9)], CollaborationMode.DEBATE_SYNTHESIS)

    assert result.confidence == pytest.approx(0.9)
    assert "Alternative View" not in result.decision
    assert "consensus (N/A)" in result.reasoning


def test_unsupported_mode():
    with pytest.raises(UnsupportedStrategyError, match="majority_rules"):
        synthesize([make_response()], "majority_rules")


def test_unsupported_mode_checked_before_empty_batch():
    with pytest.raises(UnsupportedStrategyError):
        synthesize([], "majority_rules")


def test_empty_batch_rejected():
    with pytest.raises(ValueError, match="empty"):
        synthesize([], CollaborationMode.DEMOCRATIC_CONSENSUS)


def test_resolve_mode_normalizes_strings():
    assert resolve_mode(" Hierarchical ") is CollaborationMode.HIERARCHICAL
    assert resolve_mode(CollaborationMode.DEBATE_SYNTHESIS) is CollaborationMode.DEBATE_SYNTHESIS


def test_evaluate_decision_single_response():
    decision = SynthesisResult("Use YAML.", 0.9, "r", "democratic_consensus")

    evaluation = evaluate_decision(decision, [make_response("a", 0.9)])

    # 0.4 * 0.9 + 0.3 * 0 (no diversity) + 0.3 * 1 (full consensus)
    assert evaluation.quality == pytest.approx(0.66)
    assert evaluation.improvements == ["Increase number of participating models"]
    assert "0.66" in evaluation.reasoning


def test_evaluate_decision_two_responses():
    decision = SynthesisResult("Use YAML.", 0.7, "r", "democratic_consensus")
    responses = [make_response("a", 0.8), make_response("b", 0.6)]

    evaluation = evaluate_decision(decision, responses)

    # variance 0.01 -> diversity 0.02; mean deviation 0.1 -> consensus 0.9
    assert evaluation.quality == pytest.approx(0.28 + 0.006 + 0.27)
    assert evaluation.improvements == ["Increase number of participating models"]


def test_evaluate_decision_low_confidence():
    decision = SynthesisResult("Maybe.", 0.5, "r", "hierarchical")
    responses = [make_response("a", 0.5), make_response("b", 0.5), make_response("c", 0.5)]

    evaluation = evaluate_decision(decision, responses)

    assert evaluation.improvements == ["Consider gathering more expert input"]
    assert "methodology (hierarchical)" in evaluation.reasoning
