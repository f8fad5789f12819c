"""Tests for GeminiClient — request config and response text extraction."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from comment_insight_mcp.client import GeminiClient
from comment_insight_mcp.config import ServerConfig
from comment_insight_mcp.errors import ConfigurationError


def _part(text, thought=False):
    return SimpleNamespace(text=text, thought=thought)


def _response(parts, text=""):
    content = SimpleNamespace(parts=parts)
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)], text=text)


@pytest.fixture()
def genai_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=_response([_part("ok")]))
    client.aio.aclose = AsyncMock()
    return client


class TestGenerate:
    async def test_plain_call(self, genai_client):
        client = GeminiClient(genai_client, model="gemini-test", temperature=0.5)

        out = await client.generate("hello")

        assert out == "ok"
        kwargs = genai_client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "hello"
        config = kwargs["config"]
        assert config.temperature == 0.5
        assert config.thinking_config is None
        assert config.response_mime_type is None

    async def test_structured_call(self, genai_client):
        """GIVEN a schema and system instruction THEN JSON output is requested."""
        client = GeminiClient(genai_client, model="gemini-test", thinking_level="low")
        schema = {"type": "object", "properties": {"summary": {"type": "string"}}}

        await client.generate("p", response_schema=schema, system_instruction="sys", model="other")

        kwargs = genai_client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "other"
        config = kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.response_json_schema == schema
        assert config.system_instruction == "sys"
        assert config.thinking_config is not None

    async def test_strips_thought_parts(self, genai_client):
        genai_client.aio.models.generate_content.return_value = _response(
            [_part("thinking...", thought=True), _part('{"a":'), _part("1}")],
        )
        client = GeminiClient(genai_client, model="m")

        assert await client.generate("p") == '{"a":\n1}'

    async def test_falls_back_to_response_text(self, genai_client):
        genai_client.aio.models.generate_content.return_value = SimpleNamespace(
            candidates=[], text="fallback",
        )
        client = GeminiClient(genai_client, model="m")

        assert await client.generate("p") == "fallback"

    async def test_transport_error_propagates(self, genai_client):
        genai_client.aio.models.generate_content.side_effect = ConnectionError("reset")
        client = GeminiClient(genai_client, model="m")

        with pytest.raises(ConnectionError):
            await client.generate("p")
        assert genai_client.aio.models.generate_content.await_count == 1


class TestLifecycle:
    def test_from_config_requires_key(self):
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            GeminiClient.from_config(ServerConfig())

    def test_from_config(self, monkeypatch):
        factory = MagicMock()
        monkeypatch.setattr("comment_insight_mcp.client.genai.Client", factory)
        cfg = ServerConfig(gemini_api_key="g-1234", default_model="gemini-test", default_thinking_level="high")

        client = GeminiClient.from_config(cfg)

        factory.assert_called_once_with(api_key="g-1234")
        assert client.model == "gemini-test"
        assert client.thinking_level == "high"

    async def test_close(self, genai_client):
        await GeminiClient(genai_client, model="m").close()

        genai_client.aio.aclose.assert_awaited_once()
        genai_client.close.assert_called_once()
