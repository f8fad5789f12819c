"""Shared test fixtures for comment-insight-mcp."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable.

    FastMCP 2.x wraps @server.tool in FunctionTool (not callable); 3.x
    preserves the function. This fixture unwraps at the module level so
    tests can ``await tool_func(...)`` regardless of FastMCP version.
    """
    import importlib
    import pkgutil

    import comment_insight_mcp.tools as tools_pkg

    for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + "."):
        mod = importlib.import_module(info.name)
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_keys(monkeypatch):
    """Ensure tests never hit the real YouTube or Gemini APIs."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("YOUTUBE_API_KEY", "test-youtube-key")


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls."""
    monkeypatch.setenv("GEMINI_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/comment-insight-mcp/.env."""
    monkeypatch.setattr(
        "comment_insight_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config and orchestrator singletons between tests."""
    import comment_insight_mcp.config as cfg_mod
    from comment_insight_mcp.tools.comments import reset_orchestrator

    cfg_mod._config = None
    reset_orchestrator()
    yield
    cfg_mod._config = None
    reset_orchestrator()


@pytest.fixture()
def mock_gemini():
    """A GeminiClient double whose ``generate`` is an AsyncMock."""
    client = MagicMock()
    client.generate = AsyncMock()
    client.close = AsyncMock()
    return client


def make_http_error(status: int, reason: str = "", message: str = "") -> HttpError:
    """Build a googleapiclient HttpError carrying a YouTube-style error body."""
    body: dict[str, Any] = {"error": {"code": status, "message": message}}
    if reason:
        body["error"]["errors"] = [{"reason": reason, "message": message}]
    resp = httplib2.Response({"status": status})
    return HttpError(resp, json.dumps(body).encode("utf-8"))


def comment_thread(text: str) -> dict:
    """One commentThreads item with *text* as the top-level display text."""
    return {"snippet": {"topLevelComment": {"snippet": {"textDisplay": text}}}}


def comment_page(texts: list[str], next_page_token: str | None = None) -> dict:
    page: dict[str, Any] = {"items": [comment_thread(t) for t in texts]}
    if next_page_token:
        page["nextPageToken"] = next_page_token
    return page
