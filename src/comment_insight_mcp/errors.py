"""Structured error handling — error kinds, the exception hierarchy, and the tool error model."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Closed set of failure kinds a pipeline step can report."""

    INVALID_INPUT = "INVALID_INPUT"
    CONFIGURATION = "CONFIGURATION"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    NOT_FOUND = "NOT_FOUND"
    COMMENTS_DISABLED = "COMMENTS_DISABLED"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    UNKNOWN = "UNKNOWN"


_HINTS: dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: "Pass a YouTube watch, youtu.be, embed or shorts URL",
    ErrorKind.CONFIGURATION: "Set YOUTUBE_API_KEY and GEMINI_API_KEY in the environment or config file",
    ErrorKind.INVALID_CREDENTIAL: "The API key was rejected — check YOUTUBE_API_KEY and that YouTube Data API v3 is enabled",
    ErrorKind.NOT_FOUND: "Video or comments not found — deleted, private, or wrong ID",
    ErrorKind.COMMENTS_DISABLED: "The uploader disabled comments for this video",
    ErrorKind.UPSTREAM_FAILURE: "Upstream API call failed — see server log for the raw response",
    ErrorKind.MALFORMED_RESPONSE: "Gemini returned output that does not match the analysis schema",
    ErrorKind.UNKNOWN: "Unexpected error — see server log",
}


class CommentInsightError(Exception):
    """Base class for classified pipeline failures.

    ``message`` is safe to show to users. ``detail`` carries raw upstream
    context for the log and is never part of ``str(exc)``.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidInputError(CommentInsightError):
    kind = ErrorKind.INVALID_INPUT


class ConfigurationError(CommentInsightError):
    kind = ErrorKind.CONFIGURATION


class InvalidCredentialError(CommentInsightError):
    kind = ErrorKind.INVALID_CREDENTIAL


class VideoNotFoundError(CommentInsightError):
    kind = ErrorKind.NOT_FOUND


class CommentsDisabledError(CommentInsightError):
    kind = ErrorKind.COMMENTS_DISABLED


class UpstreamError(CommentInsightError):
    kind = ErrorKind.UPSTREAM_FAILURE


class MalformedResponseError(CommentInsightError):
    kind = ErrorKind.MALFORMED_RESPONSE


class AnalysisFailedError(CommentInsightError):
    """Gemini step failed. The message is fixed; ``kind`` records why."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UPSTREAM_FAILURE,
        detail: str | None = None,
    ) -> None:
        super().__init__(message, detail=detail)
        self.kind = kind


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False


def classify_error(error: Exception) -> ErrorKind:
    """Return the kind of *error*, ``UNKNOWN`` for anything unclassified."""
    if isinstance(error, CommentInsightError):
        return error.kind
    return ErrorKind.UNKNOWN


def tool_error(kind: ErrorKind, message: str) -> dict:
    """Serialisable ToolError dict for an already-classified failure.

    Nothing is retryable: the pipeline has no retry policy and every
    kind is terminal for the current run.
    """
    return ToolError(
        error=message,
        category=kind.value,
        hint=_HINTS[kind],
        retryable=False,
    ).model_dump(mode="json")


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    return tool_error(classify_error(error), str(error))
