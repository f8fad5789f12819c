"""Comment analysis via Gemini — viewpoints, summary, sentiment buckets.

Gemini is prompted with 1-based numeric categories ("意見1を支持") while
viewpoints are presented by 0-based letter ("意見 A"). ``relabel_sentiment``
bridges the two; ``viewpoint_stats`` joins viewpoints back to their
buckets by comparing labels with whitespace removed.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from .client import GeminiClient
from .config import ServerConfig, get_config
from .errors import AnalysisFailedError, ErrorKind, MalformedResponseError
from .models.analysis import (
    AnalysisResult,
    CommentAnalysisResponse,
    NeutralStat,
    SentimentBucket,
    ViewpointStat,
)
from .prompts.comments import (
    COMMENT_ANALYSIS,
    COMMENT_ANALYSIS_SYSTEM,
    COMMENT_SEPARATOR,
    NEUTRAL_LABEL,
    NEUTRAL_MARKER,
)

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "AIによるコメント分析に失敗しました。"

_SUPPORT_PATTERN = re.compile(r"意見\s*(\d+)\s*を支持")
_WHITESPACE = re.compile(r"\s+")


def support_label(number: int) -> str:
    """Category name Gemini is asked to use for the *number*-th viewpoint (1-based)."""
    return f"意見{number}を支持"


def viewpoint_label(index: int) -> str:
    """Lettered label for the viewpoint at 0-based *index*: 0 → 意見 A."""
    return f"意見 {chr(65 + index)}"


def relabel_sentiment(name: str) -> str:
    """Rewrite ``意見N を支持`` to ``意見 {letter}``; other names pass through.

    Already-lettered names contain no digit, so applying this twice is a no-op.
    """
    match = _SUPPORT_PATTERN.search(name)
    if not match:
        return name
    return viewpoint_label(int(match.group(1)) - 1)


def _normalise(label: str) -> str:
    return _WHITESPACE.sub("", label)


def _percentage(count: int, total: int) -> int:
    return round(count / total * 100) if total > 0 else 0


def viewpoint_stats(result: AnalysisResult) -> list[ViewpointStat]:
    """Join each viewpoint with its lettered bucket; missing buckets count as 0."""
    total = sum(bucket.count for bucket in result.sentiment)
    counts = {_normalise(bucket.name): bucket.count for bucket in reversed(result.sentiment)}
    stats = []
    for index, viewpoint in enumerate(result.viewpoints):
        label = viewpoint_label(index)
        count = counts.get(_normalise(label), 0)
        stats.append(ViewpointStat(
            label=label,
            viewpoint=viewpoint,
            count=count,
            percentage=_percentage(count, total),
        ))
    return stats


def neutral_stat(result: AnalysisResult) -> NeutralStat | None:
    """The first bucket whose name contains the neutral marker, or None."""
    total = sum(bucket.count for bucket in result.sentiment)
    for bucket in result.sentiment:
        if NEUTRAL_MARKER in bucket.name:
            return NeutralStat(
                label=bucket.name,
                count=bucket.count,
                percentage=_percentage(bucket.count, total),
            )
    return None


def parse_analysis_response(raw: str) -> CommentAnalysisResponse:
    """Parse Gemini's text into the analysis contract.

    Raises:
        MalformedResponseError: Not JSON, ``summary`` missing or empty,
            ``sentiment``/``viewpoints`` not lists, or a bucket is invalid.
    """
    try:
        parsed = json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            "AI response is not valid JSON.", detail=raw[:200],
        ) from exc

    if (
        not isinstance(parsed, dict)
        or not parsed.get("summary")
        or not isinstance(parsed.get("sentiment"), list)
        or not isinstance(parsed.get("viewpoints"), list)
    ):
        raise MalformedResponseError(
            "AI response is not in the expected format.", detail=raw[:200],
        )

    try:
        return CommentAnalysisResponse.model_validate(parsed)
    except ValidationError as exc:
        raise MalformedResponseError(
            "AI response is not in the expected format.", detail=str(exc),
        ) from exc


class CommentAnalyzer:
    """Send a comment batch to Gemini and normalise the labelled result."""

    def __init__(self, client: GeminiClient, *, comment_limit: int = 100) -> None:
        self._client = client
        self.comment_limit = comment_limit

    @classmethod
    def from_config(
        cls, client: GeminiClient, cfg: ServerConfig | None = None,
    ) -> CommentAnalyzer:
        cfg = cfg or get_config()
        return cls(client, comment_limit=cfg.analysis_comment_limit)

    def build_prompt(self, comments: Sequence[str]) -> str:
        """Prompt text for the first ``comment_limit`` comments."""
        return COMMENT_ANALYSIS.format(
            support_label_1=support_label(1),
            support_label_2=support_label(2),
            neutral_label=NEUTRAL_LABEL,
            comments=COMMENT_SEPARATOR.join(comments[: self.comment_limit]),
        )

    async def close(self) -> None:
        await self._client.close()

    async def analyze(self, comments: Sequence[str]) -> AnalysisResult:
        """Analyse *comments* in one Gemini call.

        Only the first ``comment_limit`` comments are sent, whatever the
        batch size. All-or-nothing: every failure surfaces as the same
        AnalysisFailedError message, with ``kind`` set to
        MALFORMED_RESPONSE or UPSTREAM_FAILURE and the cause logged.

        Raises:
            AnalysisFailedError: The call or the response parsing failed.
        """
        prompt = self.build_prompt(comments)
        sent = min(len(comments), self.comment_limit)
        logger.info("Analysing %d of %d comment(s) with Gemini", sent, len(comments))

        try:
            raw = await self._client.generate(
                prompt,
                response_schema=CommentAnalysisResponse.model_json_schema(),
                system_instruction=COMMENT_ANALYSIS_SYSTEM,
            )
        except Exception as exc:
            logger.error("Gemini comment analysis call failed: %s", exc, exc_info=True)
            raise AnalysisFailedError(
                ANALYSIS_FAILED_MESSAGE, kind=ErrorKind.UPSTREAM_FAILURE, detail=str(exc),
            ) from exc

        try:
            response = parse_analysis_response(raw)
        except MalformedResponseError as exc:
            logger.error("Malformed Gemini analysis response: %s (%s)", exc, exc.detail)
            raise AnalysisFailedError(
                ANALYSIS_FAILED_MESSAGE, kind=ErrorKind.MALFORMED_RESPONSE, detail=exc.detail,
            ) from exc

        return AnalysisResult(
            summary=response.summary,
            viewpoints=list(response.viewpoints),
            sentiment=[
                SentimentBucket(name=relabel_sentiment(bucket.name), count=bucket.count)
                for bucket in response.sentiment
            ],
        )
