"""OpenAI provider using openai SDK with native async.

Also serves OpenAI-compatible endpoints when ``base_url`` is configured.
"""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import DEFAULT_SYSTEM_PROMPT, ModelConfig
from alliance.models import ModelResponse, Query
from alliance.providers.base import AIProvider, ProviderError, build_user_prompt, make_response

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI provider via openai SDK."""

    def __init__(self, config: ModelConfig, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> None:
        self._config = config
        self._system_prompt = system_prompt
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if config.base_url:
            self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        else:
            self._client = AsyncOpenAI(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, query: Query, round_number: int) -> ModelResponse:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=[
                        {"role": "system", "content": self._system_prompt},
                        {"role": "user", "content": build_user_prompt(query)},
                    ],
                    max_tokens=self._config.max_tokens,
                    temperature=self._config.temperature,
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            logger.error("OpenAI request timed out after %ss", self._config.timeout_sec)
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            logger.error("OpenAI API error: %s", exc)
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency_ms = (time.monotonic() - start) * 1000.0

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        usage = response.usage
        result = make_response(
            self._config,
            round_number,
            choice.message.content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else None,
            latency_ms=latency_ms,
        )

        logger.info(
            "OpenAI round %d: %.0fms, %d tokens, confidence %.2f",
            round_number,
            latency_ms,
            result.tokens.total,
            result.confidence,
        )
        return result
