"""YouTube Data API v3 client — video details and top-level comments.

Thin async-compatible wrapper using google-api-python-client (sync)
wrapped in asyncio.to_thread(). Every failure leaves this module as a
classified CommentInsightError.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import MAX_PAGE_SIZE, ServerConfig, get_config
from .errors import (
    CommentInsightError,
    CommentsDisabledError,
    InvalidCredentialError,
    UpstreamError,
    VideoNotFoundError,
)
from .models.youtube import CommentPage, VideoDetails

logger = logging.getLogger(__name__)

REASON_COMMENTS_DISABLED = "commentsDisabled"
REASON_KEY_INVALID = "keyInvalid"

INVALID_KEY_MESSAGE = "The provided API key is invalid for YouTube Data API."
COMMENTS_DISABLED_MESSAGE = "Comments are disabled for this video."


def _parse_error_body(content: bytes | str | None) -> tuple[str, str]:
    """Return ``(reason, message)`` from a YouTube error body.

    The body looks like ``{"error": {"message": ..., "errors": [{"reason": ...}]}}``.
    Anything unparseable yields empty strings.
    """
    if not content:
        return "", ""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    try:
        error = json.loads(content).get("error", {})
    except (ValueError, AttributeError):
        return "", ""
    if not isinstance(error, dict):
        return "", ""
    errors = error.get("errors")
    first = errors[0] if isinstance(errors, list) and errors else None
    reason = first.get("reason", "") if isinstance(first, dict) else ""
    return reason, error.get("message", "") or ""


def _classify_http_error(exc: HttpError, *, fallback: str) -> CommentInsightError:
    """Map a YouTube HttpError to the error taxonomy."""
    reason, message = _parse_error_body(exc.content)
    status = getattr(exc.resp, "status", "?")
    logger.warning("YouTube API error (status %s, reason %r): %s", status, reason, exc.content)
    if reason == REASON_COMMENTS_DISABLED:
        return CommentsDisabledError(COMMENTS_DISABLED_MESSAGE, detail=message)
    if reason == REASON_KEY_INVALID:
        return InvalidCredentialError(INVALID_KEY_MESSAGE, detail=message)
    return UpstreamError(message or fallback, detail=f"status={status} reason={reason}")


def _pick_thumbnail(thumbnails: dict[str, Any]) -> str:
    """Prefer the high-resolution thumbnail, fall back to the default one."""
    for variant in ("high", "default"):
        url = (thumbnails.get(variant) or {}).get("url")
        if url:
            return url
    return ""


def _extract_texts(response: dict) -> list[str]:
    """Display text of each top-level comment in a commentThreads response."""
    texts: list[str] = []
    for item in response.get("items", []):
        top = item.get("snippet", {}).get("topLevelComment", {})
        texts.append(top.get("snippet", {}).get("textDisplay", ""))
    return texts


class YouTubeClient:
    """YouTube Data API v3 client bound to one API key."""

    def __init__(self, service: Any) -> None:
        self._service = service

    @classmethod
    def from_config(cls, cfg: ServerConfig | None = None) -> YouTubeClient:
        """Build the API service from config.

        Raises:
            ConfigurationError: If YOUTUBE_API_KEY is not set.
        """
        cfg = cfg or get_config()
        key = cfg.require_youtube_key()
        service = build("youtube", "v3", developerKey=key, cache_discovery=False)
        logger.info("Created YouTube client (key …%s)", key[-4:])
        return cls(service)

    async def video_details(self, video_id: str) -> VideoDetails:
        """Fetch title and thumbnail for *video_id*.

        Raises:
            InvalidCredentialError: The API key was rejected.
            VideoNotFoundError: The API returned no items.
            UpstreamError: Any other API or transport failure.
        """

        def _fetch() -> dict:
            return self._service.videos().list(part="snippet", id=video_id).execute()

        try:
            resp = await asyncio.to_thread(_fetch)
        except HttpError as exc:
            raise _classify_http_error(exc, fallback="Failed to fetch video metadata.") from exc
        except Exception as exc:
            logger.warning("Video metadata transport failure for %s: %s", video_id, exc)
            raise UpstreamError("Failed to fetch video metadata.", detail=str(exc)) from exc

        items = resp.get("items", [])
        if not items:
            raise VideoNotFoundError(f"Video not found: {video_id}")

        snippet = items[0].get("snippet", {})
        return VideoDetails(
            id=video_id,
            title=snippet.get("title", ""),
            thumbnail_url=_pick_thumbnail(snippet.get("thumbnails", {})),
        )

    def _comment_page(self, video_id: str, page_size: int, page_token: str | None) -> CommentPage:
        params: dict[str, Any] = {
            "part": "snippet",
            "videoId": video_id,
            "maxResults": page_size,
            "textFormat": "plainText",
        }
        if page_token:
            params["pageToken"] = page_token
        response = self._service.commentThreads().list(**params).execute()
        return CommentPage(
            texts=_extract_texts(response),
            next_page_token=response.get("nextPageToken") or None,
        )

    async def comment_texts(
        self,
        video_id: str,
        *,
        max_comments: int = 200,
        page_size: int = MAX_PAGE_SIZE,
    ) -> list[str]:
        """Fetch top-level comment texts, following continuation cursors.

        Stops when the listing has no next cursor or once at least
        *max_comments* texts have accumulated. The last page is kept whole,
        so the result can exceed *max_comments* by up to one page.
        Replies are not traversed. A failure on any page discards the
        whole batch.

        Raises:
            CommentsDisabledError: Comments are turned off for the video.
            InvalidCredentialError: The API key was rejected.
            UpstreamError: Any other API or transport failure.
        """

        def _fetch() -> list[str]:
            comments: list[str] = []
            page_token: str | None = None
            pages = 0
            while True:
                page = self._comment_page(video_id, page_size, page_token)
                pages += 1
                comments.extend(page.texts)
                page_token = page.next_page_token
                if not page_token or len(comments) >= max_comments:
                    break
            logger.info("Fetched %d comment(s) for %s in %d page(s)", len(comments), video_id, pages)
            return comments

        try:
            return await asyncio.to_thread(_fetch)
        except HttpError as exc:
            raise _classify_http_error(exc, fallback="Failed to fetch comments.") from exc
        except Exception as exc:
            logger.warning("Comment fetch transport failure for %s: %s", video_id, exc)
            raise UpstreamError("Failed to fetch comments.", detail=str(exc)) from exc
