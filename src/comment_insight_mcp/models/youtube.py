"""YouTube Data API models.

Populated from videos().list() and commentThreads().list() responses
(not Gemini), so they are never used as a response schema.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class VideoDetails(BaseModel):
    """Title and thumbnail of the analysed video, one per run."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    thumbnail_url: str = ""


class CommentPage(BaseModel):
    """Display texts of one commentThreads page plus its continuation cursor."""

    texts: list[str] = Field(default_factory=list)
    next_page_token: str | None = None
