"""Analysis orchestration — URL in, video details and analysis out.

Runs the pipeline stages strictly in sequence:

    IDLE → FETCHING_METADATA → FETCHING_COMMENTS → ANALYZING → DONE

with ERROR reachable from any of them. Every transition is published to
listeners as an immutable RunSnapshot. Each run gets a monotonically
increasing run id; once a newer run has started, an older run stops at
its next suspension point and never touches the visible state again.

``rerun_personality`` starts a run directly at ANALYZING, reusing the
comments the current state already holds.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from enum import Enum
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict

from .analyzer import CommentAnalyzer
from .client import GeminiClient
from .config import MAX_PAGE_SIZE, ServerConfig, get_config
from .errors import (
    AnalysisFailedError,
    CommentInsightError,
    ConfigurationError,
    ErrorKind,
    InvalidInputError,
)
from .models.analysis import AnalysisResult
from .models.personality import PersonalityReport
from .models.youtube import VideoDetails
from .personality import PersonalityAnalyzer
from .video_id import extract_video_id
from .youtube import YouTubeClient

logger = logging.getLogger(__name__)

AnalysisMode = Literal["normal", "personality", "both"]

EMPTY_INPUT_MESSAGE = "YouTube動画のURLを入力してください。"
INVALID_URL_MESSAGE = "有効なYouTube動画のURLを入力してください。"
NO_COMMENTS_MESSAGE = "コメントが見つかりませんでした。分析を中止します。"
UNKNOWN_ERROR_MESSAGE = "不明なエラーが発生しました。"
PERSONALITY_UNAVAILABLE_MESSAGE = "性格診断分析は利用できません。"
NOTHING_TO_REANALYSE_MESSAGE = "先に動画のコメントを取得してください。"


class RunStage(str, Enum):
    IDLE = "idle"
    FETCHING_METADATA = "fetching_metadata"
    FETCHING_COMMENTS = "fetching_comments"
    ANALYZING = "analyzing"
    DONE = "done"
    ERROR = "error"


STAGE_LABELS: dict[RunStage, str] = {
    RunStage.IDLE: "",
    RunStage.FETCHING_METADATA: "動画情報を取得中…",
    RunStage.FETCHING_COMMENTS: "コメントを取得中…",
    RunStage.ANALYZING: "AIで分析中…",
    RunStage.DONE: "分析が完了しました",
    RunStage.ERROR: "エラー",
}


class RunError(BaseModel):
    """User-facing failure of a run, tagged with its kind."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str


class RunSnapshot(BaseModel):
    """Visible state of one run at one stage."""

    model_config = ConfigDict(frozen=True)

    run_id: int = 0
    stage: RunStage = RunStage.IDLE
    stage_label: str = ""
    video: VideoDetails | None = None
    comment_count: int = 0
    comments: tuple[str, ...] = ()
    result: AnalysisResult | None = None
    personality: PersonalityReport | None = None
    error: RunError | None = None

    def advance(self, stage: RunStage, **changes: object) -> RunSnapshot:
        """Copy of this snapshot moved to *stage*."""
        return self.model_copy(update={"stage": stage, "stage_label": STAGE_LABELS[stage], **changes})


Listener = Callable[[RunSnapshot], None]


class AnalysisOrchestrator:
    """Owns the current run and exposes ``run(url)`` to the presentation layer."""

    def __init__(
        self,
        youtube: YouTubeClient,
        analyzer: CommentAnalyzer,
        personality: PersonalityAnalyzer | None = None,
        *,
        max_comments: int = 200,
        page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._youtube = youtube
        self._analyzer = analyzer
        self._personality = personality
        self.max_comments = max_comments
        self.page_size = page_size
        self._run_ids = itertools.count(1)
        self._latest_run_id = 0
        self._state = RunSnapshot()
        self._listeners: list[Listener] = []

    @classmethod
    def from_config(cls, cfg: ServerConfig | None = None) -> AnalysisOrchestrator:
        """Wire every component from config.

        Raises:
            ConfigurationError: If either API key is missing.
        """
        cfg = cfg or get_config()
        youtube = YouTubeClient.from_config(cfg)
        gemini = GeminiClient.from_config(cfg)
        return cls(
            youtube,
            CommentAnalyzer.from_config(gemini, cfg),
            PersonalityAnalyzer(gemini, comment_limit=cfg.analysis_comment_limit),
            max_comments=cfg.max_comments,
            page_size=cfg.comment_page_size,
        )

    @property
    def state(self) -> RunSnapshot:
        """Snapshot of the latest run."""
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for every published transition; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def close(self) -> None:
        """Release the Gemini client shared by the analyzers."""
        await self._analyzer.close()

    def _is_stale(self, run_id: int) -> bool:
        return run_id != self._latest_run_id

    def _publish(self, snapshot: RunSnapshot) -> RunSnapshot:
        if self._is_stale(snapshot.run_id):
            logger.info("Discarding stale run %d at %s", snapshot.run_id, snapshot.stage.value)
            return snapshot
        self._state = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.warning("Run listener failed", exc_info=True)
        return snapshot

    def _fail(self, snapshot: RunSnapshot, kind: ErrorKind, message: str) -> RunSnapshot:
        # A failed run shows only its error: no partial video or result.
        return self._publish(RunSnapshot(run_id=snapshot.run_id).advance(
            RunStage.ERROR, error=RunError(kind=kind, message=message),
        ))

    async def run(self, url: str, *, mode: AnalysisMode = "normal") -> RunSnapshot:
        """Run the whole pipeline for *url* and return the terminal snapshot.

        Starting a run clears the previous run's results. A snapshot whose
        ``run_id`` differs from ``state.run_id`` was superseded by a newer
        run and is not reflected in ``state``.
        """
        run_id = next(self._run_ids)
        self._latest_run_id = run_id
        snapshot = self._publish(RunSnapshot(run_id=run_id))

        if not url or not url.strip():
            return self._fail(snapshot, ErrorKind.INVALID_INPUT, EMPTY_INPUT_MESSAGE)
        video_id = extract_video_id(url)
        if not video_id:
            return self._fail(snapshot, ErrorKind.INVALID_INPUT, INVALID_URL_MESSAGE)
        if mode not in get_args(AnalysisMode):
            return self._fail(snapshot, ErrorKind.INVALID_INPUT, f"Unknown analysis mode: {mode}")
        if mode != "normal" and self._personality is None:
            return self._fail(snapshot, ErrorKind.CONFIGURATION, PERSONALITY_UNAVAILABLE_MESSAGE)

        logger.info("Run %d: analysing video %s (mode=%s)", run_id, video_id, mode)
        try:
            snapshot = self._publish(snapshot.advance(RunStage.FETCHING_METADATA))
            video = await self._youtube.video_details(video_id)
            if self._is_stale(run_id):
                return snapshot

            snapshot = self._publish(snapshot.advance(RunStage.FETCHING_COMMENTS, video=video))
            comments = await self._youtube.comment_texts(
                video_id, max_comments=self.max_comments, page_size=self.page_size,
            )
            if self._is_stale(run_id):
                return snapshot
            if not comments:
                return self._fail(snapshot, ErrorKind.NOT_FOUND, NO_COMMENTS_MESSAGE)

            batch = tuple(comments)
            snapshot = self._publish(snapshot.advance(
                RunStage.ANALYZING, comment_count=len(batch), comments=batch,
            ))
            result = None
            personality = None
            if mode in ("normal", "both"):
                result = await self._analyzer.analyze(batch)
                if self._is_stale(run_id):
                    return snapshot
            if mode in ("personality", "both"):
                try:
                    personality = await self._personality.run(batch, video.title)
                except AnalysisFailedError as exc:
                    # Shown as is, without the generic error prefix.
                    logger.warning("Run %d: personality analysis failed: %s", run_id, exc.detail)
                    return self._fail(snapshot, exc.kind, exc.message)
                if self._is_stale(run_id):
                    return snapshot
        except CommentInsightError as exc:
            logger.warning("Run %d failed (%s): %s", run_id, exc.kind.value, exc.message)
            return self._fail(snapshot, exc.kind, f"エラーが発生しました: {exc.message}")
        except Exception:
            logger.exception("Run %d failed with an unclassified error", run_id)
            return self._fail(snapshot, ErrorKind.UNKNOWN, UNKNOWN_ERROR_MESSAGE)

        logger.info("Run %d done: %d comment(s) analysed", run_id, len(batch))
        return self._publish(snapshot.advance(RunStage.DONE, result=result, personality=personality))

    async def rerun_personality(self) -> RunSnapshot:
        """Redo the personality report on the comments already held in ``state``.

        Nothing is fetched again. The new run keeps the video, comments and
        normal analysis of the run it starts from; a failure keeps them too
        and only reports the error.

        Raises:
            InvalidInputError: No run has fetched comments yet.
            ConfigurationError: No personality analyzer is configured.
        """
        previous = self._state
        if self._personality is None:
            raise ConfigurationError(PERSONALITY_UNAVAILABLE_MESSAGE)
        if not previous.comments or previous.video is None:
            raise InvalidInputError(NOTHING_TO_REANALYSE_MESSAGE)

        run_id = next(self._run_ids)
        self._latest_run_id = run_id
        snapshot = self._publish(previous.advance(
            RunStage.ANALYZING, run_id=run_id, personality=None, error=None,
        ))
        logger.info("Run %d: personality re-analysis of %d comment(s)", run_id, len(previous.comments))
        try:
            personality = await self._personality.run(previous.comments, previous.video.title)
        except AnalysisFailedError as exc:
            logger.warning("Run %d: personality analysis failed: %s", run_id, exc.detail)
            return self._publish(snapshot.advance(
                RunStage.ERROR, error=RunError(kind=exc.kind, message=exc.message),
            ))
        if self._is_stale(run_id):
            return snapshot
        return self._publish(snapshot.advance(RunStage.DONE, personality=personality))
