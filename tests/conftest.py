"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, PromptsConfig
from alliance.models import ModelResponse, Query, TokenUsage
from alliance.providers.base import AIProvider


def make_response(
    provider: str = "mock",
    confidence: float = 0.8,
    content: str | None = None,
    round_number: int = 0,
    tokens: int = 10,
    cost: float = 0.001,
) -> ModelResponse:
    """Build a ModelResponse with sensible defaults for tests."""
    return ModelResponse(
        provider=provider,
        model="mock-model",
        round_number=round_number,
        content=content if content is not None else f"Answer from {provider}. It is well considered.",
        confidence=confidence,
        reasoning=f"Reasoning from {provider}.",
        tokens=TokenUsage(input=tokens // 2, output=tokens - tokens // 2, total=tokens),
        cost=cost,
        latency_ms=100.0,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        system="Be helpful.",
        debate="Q: {question}\n{context_block}Round {round}\n{perspectives}\nRefine your answer.",
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        voting_threshold=0.7,
        max_debate_rounds=2,
        timeout_ms=5000,
        output_dir=tmp_path / "output",
        default_panel=["claude", "gemini"],
    )


@pytest.fixture
def sample_app_config(
    sample_defaults_config: DefaultsConfig,
    sample_prompts_config: PromptsConfig,
) -> AppConfig:
    model_cfg = ModelConfig(
        name="claude",
        sdk="anthropic",
        model="claude-3-5-sonnet-20241022",
        api_key_env="ANTHROPIC_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
    )
    return AppConfig(
        defaults=sample_defaults_config,
        models={"claude": model_cfg},
        prompts=sample_prompts_config,
        available_providers={"claude"},
    )


@pytest.fixture
def sample_query() -> Query:
    return Query(prompt="Should we use YAML or JSON for config?", require_consensus=True)


class MockProvider(AIProvider):
    """Test double AIProvider.

    ``confidences`` are returned in order, one per call; the last value
    repeats once the list is exhausted.
    """

    def __init__(self, provider_name: str = "mock", confidences: list[float] | None = None) -> None:
        self._name = provider_name
        self._confidences = list(confidences or [0.8])
        self.prompts: list[str] = []
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(side_effect=self._respond)  # type: ignore[assignment]

    async def _respond(self, query: Query, round_number: int) -> ModelResponse:
        self.prompts.append(query.prompt)
        index = min(len(self.prompts) - 1, len(self._confidences) - 1)
        return make_response(
            self._name,
            self._confidences[index],
            content=f"Round {round_number} answer from {self._name}. Use a layered design.",
            round_number=round_number,
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, query: Query, round_number: int) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return await self._respond(query, round_number)

