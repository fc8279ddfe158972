"""Fixed per-provider token pricing. Arithmetic only."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenRates:
    """USD per 1K tokens."""

    input_per_1k: float
    output_per_1k: float


RATE_TABLE: dict[str, TokenRates] = {
    "openai": TokenRates(input_per_1k=0.03, output_per_1k=0.03),
    "gemini": TokenRates(input_per_1k=0.0005, output_per_1k=0.0005),
    "anthropic": TokenRates(input_per_1k=0.003, output_per_1k=0.015),
}

_FREE = TokenRates(0.0, 0.0)


def rates_for(sdk: str, input_per_1k: float | None = None, output_per_1k: float | None = None) -> TokenRates:
    """Rates for an SDK family; explicit per-model values override the table."""
    base = RATE_TABLE.get(sdk, _FREE)
    return TokenRates(
        input_per_1k=base.input_per_1k if input_per_1k is None else input_per_1k,
        output_per_1k=base.output_per_1k if output_per_1k is None else output_per_1k,
    )


def calculate_cost(rates: TokenRates, input_tokens: int, output_tokens: int) -> float:
    input_cost = (max(input_tokens, 0) / 1000.0) * rates.input_per_1k
    output_cost = (max(output_tokens, 0) / 1000.0) * rates.output_per_1k
    return input_cost + output_cost
