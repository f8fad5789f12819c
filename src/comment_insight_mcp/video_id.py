"""YouTube video ID extraction."""

from __future__ import annotations

import re

# watch?v=, /v/, /e/, /embed/, /shorts/, /live/, /<segment>/<segment>/ paths and youtu.be short links.
_URL_PATTERN = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?|shorts|live)/|.*[?&]v=)|youtu\.be/)"
    r"([^\"&?/\s]{11})"
)
_BARE_ID = re.compile(r"[A-Za-z0-9_-]{11}")


def extract_video_id(text: str) -> str | None:
    """Return the 11-character video ID in *text*, or None.

    Accepts any of the known YouTube URL shapes, or a bare ID on its own.
    A None result is an ordinary validation outcome; callers decide how
    to report it.
    """
    if not text:
        return None
    match = _URL_PATTERN.search(text)
    if match:
        return match.group(1)
    candidate = text.strip()
    if _BARE_ID.fullmatch(candidate):
        return candidate
    return None
