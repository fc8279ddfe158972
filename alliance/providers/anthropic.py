"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import os
import time

import anthropic as anthropic_sdk

from config.config_loader import DEFAULT_SYSTEM_PROMPT, ModelConfig
from alliance.models import ModelResponse, Query
from alliance.providers.base import AIProvider, ProviderError, build_user_prompt, make_response

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ModelConfig, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> None:
        self._config = config
        self._system_prompt = system_prompt
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, query: Query, round_number: int) -> ModelResponse:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=self._config.model,
                    max_tokens=self._config.max_tokens,
                    temperature=self._config.temperature,
                    system=self._system_prompt,
                    messages=[{"role": "user", "content": build_user_prompt(query)}],
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            logger.error("Anthropic request timed out after %ss", self._config.timeout_sec)
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            logger.error("Anthropic API error: %s", exc)
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency_ms = (time.monotonic() - start) * 1000.0

        if not response.content:
            raise ProviderError(self._config.name, "Empty response content")

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.name, "No text blocks in response")

        usage = response.usage
        result = make_response(
            self._config,
            round_number,
            "\n".join(text_blocks),
            input_tokens=usage.input_tokens if usage else 0,
            output_tokens=usage.output_tokens if usage else 0,
            total_tokens=None,
            latency_ms=latency_ms,
        )

        logger.info(
            "Anthropic round %d: %.0fms, %d tokens, confidence %.2f",
            round_number,
            latency_ms,
            result.tokens.total,
            result.confidence,
        )
        return result
