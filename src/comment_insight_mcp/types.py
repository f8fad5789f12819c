"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

AnalysisModeParam = Literal["normal", "personality", "both"]

# No min_length: empty input is reported by the orchestrator with its own message.
VideoUrl = Annotated[str, Field(description="YouTube video URL (watch, youtu.be, embed, shorts) or bare video ID")]
MaxComments = Annotated[int, Field(
    ge=1, le=500, description="Stop paging once this many comments have been fetched",
)]
