"""Gemini client wrapper with structured-output support."""

from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import types

from .config import ServerConfig, get_config

logger = logging.getLogger(__name__)


class GeminiClient:
    """One configured google-genai client plus the generation defaults to use with it.

    Constructed once per process by ``from_config`` and handed to the
    analyzers, so tests can substitute a double.
    """

    def __init__(
        self,
        client: genai.Client,
        *,
        model: str,
        thinking_level: str = "",
        temperature: float = 1.0,
    ) -> None:
        self._client = client
        self.model = model
        self.thinking_level = thinking_level
        self.temperature = temperature

    @classmethod
    def from_config(cls, cfg: ServerConfig | None = None) -> GeminiClient:
        """Build a client from config.

        Raises:
            ConfigurationError: If GEMINI_API_KEY is not set.
        """
        cfg = cfg or get_config()
        key = cfg.require_gemini_key()
        logger.info("Created Gemini client (key …%s, model %s)", key[-4:], cfg.default_model)
        return cls(
            genai.Client(api_key=key),
            model=cfg.default_model,
            thinking_level=cfg.default_thinking_level,
            temperature=cfg.default_temperature,
        )

    def _build_config(
        self,
        response_schema: dict | None,
        system_instruction: str | None,
    ) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(temperature=self.temperature)
        if self.thinking_level:
            config.thinking_config = types.ThinkingConfig(thinking_level=self.thinking_level)
        if system_instruction:
            config.system_instruction = system_instruction
        if response_schema:
            config.response_mime_type = "application/json"
            config.response_json_schema = response_schema
        return config

    async def generate(
        self,
        contents: Any,
        *,
        response_schema: dict | None = None,
        system_instruction: str | None = None,
        model: str | None = None,
    ) -> str:
        """Generate text via Gemini, optionally constrained to a JSON schema.

        Single attempt; transport errors propagate to the caller.

        Args:
            contents: Prompt contents (text or parts).
            response_schema: JSON schema dict to constrain output format.
            system_instruction: System-level instruction prepended to the prompt.
            model: Override model ID for this call.

        Returns:
            The model's text response with thinking parts stripped.
        """
        response = await self._client.aio.models.generate_content(
            model=model or self.model,
            contents=contents,
            config=self._build_config(response_schema, system_instruction),
        )

        # Thought parts are never returned
        parts = response.candidates[0].content.parts if response.candidates else []
        text_parts = [p.text for p in parts or [] if p.text and not getattr(p, "thought", False)]
        return "\n".join(text_parts) if text_parts else (response.text or "")

    async def close(self) -> None:
        """Release the underlying HTTP sessions."""
        await self._client.aio.aclose()
        self._client.close()
        logger.info("Closed Gemini client")
