"""Tests for alliance/pricing.py."""

import pytest

from alliance.pricing import TokenRates, calculate_cost, rates_for


def test_anthropic_rates():
    cost = calculate_cost(rates_for("anthropic"), input_tokens=1000, output_tokens=2000)
    assert cost == pytest.approx(0.003 + 0.03)


def test_openai_rates():
    assert calculate_cost(rates_for("openai"), 500, 500) == pytest.approx(0.03)


def test_gemini_rates():
    assert calculate_cost(rates_for("gemini"), 2000, 0) == pytest.approx(0.001)


def test_unknown_sdk_is_free():
    assert rates_for("local") == TokenRates(0.0, 0.0)


def test_overrides_replace_table_values():
    rates = rates_for("openai", input_per_1k=0.0)
    assert rates == TokenRates(input_per_1k=0.0, output_per_1k=0.03)


def test_negative_token_counts_cost_nothing():
    assert calculate_cost(rates_for("openai"), -100, -1) == 0.0
