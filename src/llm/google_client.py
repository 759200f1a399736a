# src/llm/google_client.py — v1
"""Google Gemini client used by the default extraction function.

Uses the google-generativeai SDK synchronously; the batch core is
single-threaded and blocking.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fusextractor.config.settings import ConfigurationError

logger = logging.getLogger(__name__)


class GeminiClient:
    """Minimal text-in/text-out Gemini client."""

    def __init__(
        self,
        model: str = "gemini-2.5-flash-lite",
        api_key: str = "",
        temperature: float = 0.0,
        max_output_tokens: int = 1024,
        json_mode: bool = True,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GOOGLE_API_KEY environment variable not set")
        self._model_name = model
        self._api_key = api_key
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._json_mode = json_mode
        self._model: Any = None

    @property
    def model_name(self) -> str:
        return self._model_name

    def complete(self, prompt: str, response_schema: dict[str, Any] | None = None) -> str:
        """Send one prompt and return the response text.

        Args:
            prompt: Full prompt text.
            response_schema: JSON schema constraining the output (JSON mode only).
        """
        model = self._get_model()
        gen_config: dict[str, Any] = {
            "max_output_tokens": self._max_output_tokens,
            "temperature": self._temperature,
        }
        if self._json_mode:
            gen_config["response_mime_type"] = "application/json"
            if response_schema is not None:
                gen_config["response_schema"] = response_schema

        t0 = time.monotonic()
        resp = model.generate_content(prompt, generation_config=gen_config)
        latency = int((time.monotonic() - t0) * 1000)

        usage = getattr(resp, "usage_metadata", None)
        logger.debug(
            "Gemini %s responded in %dms (in=%s, out=%s tokens)",
            self._model_name, latency,
            getattr(usage, "prompt_token_count", "?") if usage else "?",
            getattr(usage, "candidates_token_count", "?") if usage else "?",
        )
        return resp.text or ""

    def _get_model(self) -> Any:
        if self._model is None:
            import google.generativeai as genai

            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(self._model_name)
        return self._model
