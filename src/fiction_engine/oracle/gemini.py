from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


class GeminiOracle:
    """Narrative oracle backed by a Gemini model.

    One ``generate_content`` call per prompt; retries and timeouts are left to
    the client's transport defaults.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        client: Any = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ):
        if client is None:
            if not api_key:
                raise ValueError("Gemini API key is missing.")
            client = genai.Client(api_key=api_key)
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens

    @property
    def model(self) -> str:
        return self._model

    def _generation_config(self) -> types.GenerateContentConfig | None:
        if self._temperature is None and self._max_output_tokens is None:
            return None
        return types.GenerateContentConfig(
            temperature=self._temperature,
            max_output_tokens=self._max_output_tokens,
        )

    async def generate(self, prompt: str) -> str:
        logger.info("Sending %d char prompt to %s", len(prompt), self._model)
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=prompt,
            config=self._generation_config(),
        )
        text = response.text or ""
        logger.debug("Raw %s response: %.500s", self._model, text)
        return text
