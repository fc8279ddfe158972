"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import DEFAULT_SYSTEM_PROMPT, ModelConfig
from alliance.models import ModelResponse, Query
from alliance.providers.base import AIProvider, ProviderError, build_user_prompt, make_response

logger = logging.getLogger(__name__)


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> None:
        self._config = config
        self._system_prompt = system_prompt
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, query: Query, round_number: int) -> ModelResponse:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=build_user_prompt(query),
                    config=genai_types.GenerateContentConfig(
                        system_instruction=self._system_prompt,
                        max_output_tokens=self._config.max_tokens,
                        temperature=self._config.temperature,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            logger.error("Gemini request timed out after %ss", self._config.timeout_sec)
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            logger.error("Gemini API error: %s", exc)
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency_ms = (time.monotonic() - start) * 1000.0

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        usage = response.usage_metadata
        result = make_response(
            self._config,
            round_number,
            response.text,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            total_tokens=usage.total_token_count if usage else None,
            latency_ms=latency_ms,
        )

        logger.info(
            "Gemini round %d: %.0fms, %d tokens, confidence %.2f",
            round_number,
            latency_ms,
            result.tokens.total,
            result.confidence,
        )
        return result
