"""Abstract base for all AI model providers, plus the shared response mapping."""

from abc import ABC, abstractmethod

from config.config_loader import ModelConfig
from alliance.errors import ProviderError
from alliance.heuristics import estimate_confidence, extract_reasoning, profile_for
from alliance.models import ModelResponse, Query, TokenUsage
from alliance.pricing import calculate_cost, rates_for

__all__ = ["AIProvider", "ProviderError", "build_user_prompt", "make_response"]

_PING_PROMPT = "Reply with the word OK only."
_ANSWER_INSTRUCTION = "Please provide your response with clear reasoning and indicate your confidence level."


class AIProvider(ABC):
    """Abstract base for all AI model providers.

    Instances are built once at startup and shared by every query; they must
    not keep per-query state.
    """

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'gemini', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(self, query: Query, round_number: int) -> ModelResponse:
        """Generate a response for the given query.

        Args:
            query: Prompt plus optional context.
            round_number: 0 for initial answers, then the debate round.

        Returns:
            ModelResponse with content, confidence, reasoning and accounting.

        Raises:
            ProviderError: On API failure, timeout, or invalid response.
        """
        ...

    async def health_check(self) -> None:
        """Send a tiny request. Raises ProviderError if the backend is unusable."""
        try:
            await self.generate(Query(prompt=_PING_PROMPT), round_number=0)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(self.name(), f"Health check failed: {exc}") from exc


def build_user_prompt(query: Query) -> str:
    """Render the user-turn text sent to a backend."""
    if query.context:
        return f"Context: {query.context}\n\nQuestion: {query.prompt}\n\n{_ANSWER_INSTRUCTION}"
    return f"{query.prompt}\n\n{_ANSWER_INSTRUCTION}"


def make_response(
    config: ModelConfig,
    round_number: int,
    content: str,
    input_tokens: int,
    output_tokens: int,
    total_tokens: int | None,
    latency_ms: float,
) -> ModelResponse:
    """Map raw backend output to a ModelResponse using the SDK family's heuristics and rates."""
    input_tokens = max(int(input_tokens or 0), 0)
    output_tokens = max(int(output_tokens or 0), 0)
    total = int(total_tokens) if total_tokens else input_tokens + output_tokens
    rates = rates_for(config.sdk, config.input_cost_per_1k, config.output_cost_per_1k)
    return ModelResponse(
        provider=config.name,
        model=config.model,
        round_number=round_number,
        content=content,
        confidence=estimate_confidence(content, profile_for(config.sdk)),
        reasoning=extract_reasoning(content),
        tokens=TokenUsage(input=input_tokens, output=output_tokens, total=total),
        cost=calculate_cost(rates, input_tokens, output_tokens),
        latency_ms=max(latency_ms, 0.0),
    )
