"""Comment analysis tools — 4 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..analyzer import neutral_stat, viewpoint_stats
from ..config import get_config
from ..errors import ErrorKind, InvalidInputError, make_tool_error, tool_error
from ..orchestrator import (
    EMPTY_INPUT_MESSAGE,
    INVALID_URL_MESSAGE,
    AnalysisOrchestrator,
    RunSnapshot,
    RunStage,
)
from ..tracing import trace
from ..types import AnalysisModeParam, MaxComments, VideoUrl
from ..video_id import extract_video_id
from ..youtube import YouTubeClient

logger = logging.getLogger(__name__)
comments_server = FastMCP("comments")

_READ_ONLY = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=False,
    openWorldHint=True,
)

SUPERSEDED_MESSAGE = "This analysis was superseded by a newer run."

_orchestrator: AnalysisOrchestrator | None = None


def get_orchestrator() -> AnalysisOrchestrator:
    """Return the process-wide orchestrator, wiring it from config on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = AnalysisOrchestrator.from_config()
    return _orchestrator


def reset_orchestrator() -> None:
    """Drop the orchestrator so the next call rebuilds it from config."""
    global _orchestrator
    _orchestrator = None


async def close_orchestrator() -> None:
    """Close the current orchestrator's Gemini client, then drop it."""
    orchestrator = _orchestrator
    reset_orchestrator()
    if orchestrator is not None:
        await orchestrator.close()


def _require_video_id(url: str) -> str:
    if not url or not url.strip():
        raise InvalidInputError(EMPTY_INPUT_MESSAGE)
    video_id = extract_video_id(url)
    if not video_id:
        raise InvalidInputError(INVALID_URL_MESSAGE)
    return video_id


def snapshot_to_dict(snapshot: RunSnapshot) -> dict:
    """Serialise a DONE snapshot, adding the per-viewpoint breakdown."""
    payload = snapshot.model_dump(mode="json", exclude={"error", "comments"})
    if snapshot.result is not None:
        payload["viewpoint_stats"] = [s.model_dump() for s in viewpoint_stats(snapshot.result)]
        neutral = neutral_stat(snapshot.result)
        payload["neutral_stat"] = neutral.model_dump() if neutral else None
    return payload


def _outcome(snapshot: RunSnapshot) -> dict:
    if snapshot.error is not None:
        return tool_error(snapshot.error.kind, snapshot.error.message)
    if snapshot.stage is not RunStage.DONE:
        return tool_error(ErrorKind.UNKNOWN, SUPERSEDED_MESSAGE)
    return snapshot_to_dict(snapshot)


@comments_server.tool(annotations=_READ_ONLY)
@trace(name="comment_analyze", span_type="TOOL")
async def comment_analyze(
    url: VideoUrl,
    mode: AnalysisModeParam = "normal",
) -> dict:
    """Analyse the discussion under a YouTube video.

    Fetches the video's title and thumbnail, up to ~200 top-level comments,
    and asks Gemini for 2–4 viewpoints, a neutral summary and the number of
    comments supporting each viewpoint. ``mode="personality"`` produces a
    commenter-personality report instead; ``"both"`` produces both.

    Args:
        url: YouTube video URL.
        mode: "normal", "personality", or "both".

    Returns:
        Dict with video, result, viewpoint_stats, neutral_stat and
        personality, or a ToolError dict.
    """
    try:
        orchestrator = get_orchestrator()
    except Exception as exc:
        return make_tool_error(exc)
    return _outcome(await orchestrator.run(url, mode=mode))


@comments_server.tool(annotations=_READ_ONLY)
@trace(name="comment_personality", span_type="TOOL")
async def comment_personality() -> dict:
    """Redo the commenter-personality report for the last analysed video.

    Reuses the comments fetched by the latest ``comment_analyze`` call, so
    no YouTube quota is spent. The video, comments and normal analysis of
    that call are kept.

    Returns:
        Same shape as ``comment_analyze``, or a ToolError dict.
    """
    try:
        snapshot = await get_orchestrator().rerun_personality()
    except Exception as exc:
        return make_tool_error(exc)
    return _outcome(snapshot)


@comments_server.tool(annotations=_READ_ONLY)
@trace(name="video_details", span_type="TOOL")
async def video_details(url: VideoUrl) -> dict:
    """Fetch a YouTube video's title and thumbnail without any Gemini call.

    Costs 1 YouTube API unit.

    Args:
        url: YouTube video URL.

    Returns:
        Dict matching VideoDetails, or a ToolError dict.
    """
    try:
        video_id = _require_video_id(url)
        details = await YouTubeClient.from_config().video_details(video_id)
        return details.model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@comments_server.tool(annotations=_READ_ONLY)
@trace(name="video_comments", span_type="TOOL")
async def video_comments(url: VideoUrl, max_comments: MaxComments = 200) -> dict:
    """Fetch top-level YouTube comment texts without any Gemini call.

    Pages of 100 are fetched until the listing ends or max_comments is
    reached; the last page is returned whole. Costs 1 YouTube API unit
    per page.

    Args:
        url: YouTube video URL.
        max_comments: Stop paging after this many comments.

    Returns:
        Dict with video_id, comments and count, or a ToolError dict.
    """
    try:
        video_id = _require_video_id(url)
        comments = await YouTubeClient.from_config().comment_texts(
            video_id, max_comments=max_comments, page_size=get_config().comment_page_size,
        )
        return {"video_id": video_id, "comments": comments, "count": len(comments)}
    except Exception as exc:
        return make_tool_error(exc)
