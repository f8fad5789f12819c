"""Infrastructure tools — runtime configuration on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config, update_config
from ..errors import make_tool_error
from ..tracing import trace
from .comments import close_orchestrator

infra_server = FastMCP("infra")
_SECRET_FIELDS = {"gemini_api_key", "youtube_api_key"}


def _public_config() -> dict:
    """Live config without the API keys."""
    return get_config().model_dump(exclude=_SECRET_FIELDS)


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_configure", span_type="TOOL")
async def infra_configure(
    model: Annotated[str | None, Field(description="Gemini model ID, e.g. 'gemini-2.5-flash'")] = None,
    thinking_level: Annotated[str | None, Field(
        description="minimal, low, medium, high, or empty for the model default",
    )] = None,
    max_comments: Annotated[int | None, Field(ge=1, le=500, description="Comment fetch cap")] = None,
    analysis_comment_limit: Annotated[int | None, Field(
        ge=1, le=500, description="Comments sent to Gemini per analysis",
    )] = None,
) -> dict:
    """Inspect or change runtime settings for subsequent analyses.

    Call with no arguments to read the current config. Changes rebuild the
    analysis pipeline on its next use; API keys are never returned.

    Returns:
        Dict with the redacted current config.
    """
    try:
        update_config(
            default_model=model,
            default_thinking_level=thinking_level,
            max_comments=max_comments,
            analysis_comment_limit=analysis_comment_limit,
        )
        await close_orchestrator()
    except Exception as exc:
        return make_tool_error(exc)
    return {"config": _public_config()}
