"""Tests for alliance/assembly.py."""

import time

import pytest

from alliance.assembly import assemble_result, select_dissenting
from alliance.models import DebateRound
from alliance.synthesis import SynthesisResult
from tests.conftest import make_response


def _decision() -> SynthesisResult:
    return SynthesisResult("Use YAML.", 0.8, "Most agreed.", "democratic_consensus")


def _round(number: int, responses) -> DebateRound:
    return DebateRound(number, [r.provider for r in responses], list(responses), "note", 0.8)


def test_select_dissenting_is_strictly_below_threshold():
    responses = [make_response("a", 0.7), make_response("b", 0.69), make_response("c", 0.9)]
    assert [r.provider for r in select_dissenting(responses, 0.7)] == ["b"]


def test_assemble_copies_decision_fields():
    final = [make_response("a", 0.9), make_response("b", 0.5)]

    result = assemble_result(
        decision=_decision(),
        final_responses=final,
        agreement=0.7,
        threshold=0.7,
        participants=["a", "b", "c"],
        rounds=[],
        show_debate=False,
        start_time=time.monotonic(),
    )

    assert result.decision == "Use YAML."
    assert result.confidence == 0.8
    assert result.reasoning == "Most agreed."
    assert result.methodology == "democratic_consensus"
    assert result.participants == ["a", "b", "c"]
    assert [r.provider for r in result.dissenting] == ["b"]
    assert result.debate is None
    assert result.metadata.rounds == 0


def test_assemble_totals_final_batch_and_cumulative():
    first = [make_response("a", 0.3, tokens=100, cost=0.01), make_response("b", 0.3, tokens=50, cost=0.02)]
    final = [make_response("a", 0.9, tokens=10, cost=0.001), make_response("b", 0.8, tokens=20, cost=0.002)]

    result = assemble_result(
        decision=_decision(),
        final_responses=final,
        agreement=0.85,
        threshold=0.7,
        participants=["a", "b"],
        rounds=[_round(1, final)],
        show_debate=True,
        start_time=time.monotonic(),
        all_batches=[first, final],
    )

    assert result.metadata.total_tokens == 30
    assert result.metadata.total_cost == pytest.approx(0.003)
    assert result.metadata.cumulative_tokens == 180
    assert result.metadata.cumulative_cost == pytest.approx(0.033)
    assert result.metadata.rounds == 1
    assert [r.number for r in result.debate] == [1]


def test_assemble_without_history_uses_final_batch_for_cumulative():
    final = [make_response("a", 0.9, tokens=10)]

    result = assemble_result(
        decision=_decision(),
        final_responses=final,
        agreement=1.0,
        threshold=0.7,
        participants=["a"],
        rounds=[],
        show_debate=True,
        start_time=time.monotonic(),
    )

    assert result.metadata.cumulative_tokens == 10
    assert result.debate == []


def test_assemble_measures_elapsed_time():
    result = assemble_result(
        decision=_decision(),
        final_responses=[make_response()],
        agreement=1.0,
        threshold=0.7,
        participants=["mock"],
        rounds=[],
        show_debate=False,
        start_time=time.monotonic() - 2.0,
        cancelled=True,
    )

    assert result.metadata.processing_time_ms >= 2000
    assert result.metadata.cancelled is True
