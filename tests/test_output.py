"""Tests for alliance/output.py."""

from pathlib import Path

import pytest

from alliance.models import ConsensusResult, DebateRound, Query, ResultMetadata
from alliance.output import _slug, print_result, save_to_file
from tests.conftest import make_response


def test_slug_basic():
    assert _slug("Should we use YAML or JSON?") == "should-we-use-yaml-or-json"


def test_slug_max_len():
    assert len(_slug("a" * 100)) <= 40


def test_slug_special_chars():
    result = _slug("API vs. SDK (2024)")
    assert "." not in result
    assert "(" not in result
    assert ")" not in result


@pytest.fixture
def sample_result() -> ConsensusResult:
    round_one = [make_response("claude", 0.9, round_number=1), make_response("openai", 0.5, round_number=1)]
    return ConsensusResult(
        decision="Use YAML for human-edited config.",
        confidence=0.7,
        agreement=0.7,
        participants=["claude", "openai"],
        reasoning="Democratic consensus reached with 2 participants.",
        dissenting=[round_one[1]],
        methodology="democratic_consensus",
        metadata=ResultMetadata(
            total_tokens=20,
            total_cost=0.002,
            processing_time_ms=10500.0,
            rounds=1,
            cumulative_tokens=40,
            cumulative_cost=0.004,
        ),
        debate=[DebateRound(1, ["claude", "openai"], round_one, "Selected response from claude.", 0.7)],
    )


@pytest.fixture
def sample_file_query() -> Query:
    return Query(
        prompt="Should we use YAML or JSON for config?",
        context="Config is edited by ops staff.",
        metadata={"source": "inbox/config.md"},
    )


def test_save_to_file_creates_file(tmp_path: Path, sample_file_query, sample_result):
    saved = save_to_file(sample_file_query, sample_result, tmp_path / "output")
    assert saved.exists()
    assert saved.suffix == ".md"


def test_save_to_file_creates_output_dir(tmp_path: Path, sample_file_query, sample_result):
    output_dir = tmp_path / "nested" / "output"
    assert not output_dir.exists()
    save_to_file(sample_file_query, sample_result, output_dir)
    assert output_dir.exists()


def test_save_to_file_content(tmp_path: Path, sample_file_query, sample_result):
    content = save_to_file(sample_file_query, sample_result, tmp_path).read_text(encoding="utf-8")

    assert "# Council Decision: Should we use YAML or JSON for config?" in content
    assert "**Participants:** claude, openai" in content
    assert "**Methodology:** democratic_consensus" in content
    assert "**Tokens:** 20 (all rounds: 40)" in content
    assert "**Duration:** 10.5s" in content
    assert "**Source:** inbox/config.md" in content
    assert "## Context" in content
    assert "## Debate Round 1 (agreement 0.70)" in content
    assert "## Decision\n\nUse YAML for human-edited config." in content
    assert "## Dissenting" in content
    assert "- **openai** (0.50): Reasoning from openai." in content


def test_save_to_file_without_trace_or_dissent(tmp_path: Path, sample_result):
    sample_result.debate = None
    sample_result.dissenting = []
    query = Query(prompt="Tabs or spaces?")

    content = save_to_file(query, sample_result, tmp_path).read_text(encoding="utf-8")

    assert "## Debate Round" not in content
    assert "## Dissenting" not in content
    assert "## Context" not in content
    assert "**Source:** cli" in content


def test_save_to_file_filename_has_slug(tmp_path: Path, sample_file_query, sample_result):
    saved = save_to_file(sample_file_query, sample_result, tmp_path)
    assert saved.name.endswith("_should-we-use-yaml-or-json-for-config.md")


def test_save_to_file_slug_override(tmp_path: Path, sample_file_query, sample_result):
    saved = save_to_file(sample_file_query, sample_result, tmp_path, slug_override="config")
    assert saved.name.endswith("_config.md")


def test_print_result_renders_without_error(sample_result, capsys):
    print_result(sample_result)
    out = capsys.readouterr().out
    assert "Council Decision" in out
    assert "Dissenting" in out
