"""Commenter personality report — classification, interactions, moderation.

Three fixed Gemini calls in sequence: a structured personality-type
classification, then two free-text follow-ups that build on it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from .client import GeminiClient
from .errors import AnalysisFailedError, ErrorKind
from .models.personality import PersonalityAnalysis, PersonalityReport
from .prompts.comments import COMMENT_SEPARATOR
from .prompts.personality import (
    INTERACTION_PATTERNS,
    MODERATION_STRATEGY,
    PERSONALITY_TYPES,
)

logger = logging.getLogger(__name__)

PERSONALITY_FAILED_MESSAGE = "性格診断分析に失敗しました。"
DEFAULT_CONTEXT = "一般的な議論"
# Types above this share of commenters count as dominant.
DOMINANT_PERCENTAGE = 15


class PersonalityAnalyzer:
    """Build a PersonalityReport from a comment batch."""

    def __init__(self, client: GeminiClient, *, comment_limit: int = 100) -> None:
        self._client = client
        self.comment_limit = comment_limit

    async def analyze_types(
        self, comments: Sequence[str], focus: str = "basic",
    ) -> PersonalityAnalysis:
        prompt = PERSONALITY_TYPES.format(
            comments=COMMENT_SEPARATOR.join(comments[: self.comment_limit]),
            focus=focus,
        )
        raw = await self._client.generate(
            prompt, response_schema=PersonalityAnalysis.model_json_schema(),
        )
        return PersonalityAnalysis.model_validate_json(raw)

    async def predict_interactions(self, types: Sequence[str], context: str | None = None) -> str:
        prompt = INTERACTION_PATTERNS.format(
            types=", ".join(types), context=context or DEFAULT_CONTEXT,
        )
        return await self._client.generate(prompt)

    async def moderation_strategy(self, dominant_types: Sequence[str], conflict_level: int) -> str:
        prompt = MODERATION_STRATEGY.format(
            types=", ".join(dominant_types), conflict_level=conflict_level,
        )
        return await self._client.generate(prompt)

    async def run(
        self, comments: Sequence[str], video_title: str | None = None,
    ) -> PersonalityReport:
        """Classify commenters, then predict interactions and a moderation strategy.

        Raises:
            AnalysisFailedError: Any of the three calls failed.
        """
        logger.info("Personality analysis: %d comment(s), title=%r", len(comments), video_title)
        try:
            analysis = await self.analyze_types(comments)
            types = [p.type for p in analysis.distribution]
            interactions = await self.predict_interactions(types, video_title)
            dominant = [p.type for p in analysis.distribution if p.percentage > DOMINANT_PERCENTAGE]
            strategy = await self.moderation_strategy(dominant, analysis.conflict_potential)
        except ValidationError as exc:
            logger.error("Malformed personality response: %s", exc)
            raise AnalysisFailedError(
                PERSONALITY_FAILED_MESSAGE, kind=ErrorKind.MALFORMED_RESPONSE, detail=str(exc),
            ) from exc
        except Exception as exc:
            logger.error("Personality analysis failed: %s", exc, exc_info=True)
            raise AnalysisFailedError(
                PERSONALITY_FAILED_MESSAGE, kind=ErrorKind.UPSTREAM_FAILURE, detail=str(exc),
            ) from exc

        return PersonalityReport(analysis=analysis, interactions=interactions, strategy=strategy)
