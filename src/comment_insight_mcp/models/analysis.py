"""Comment analysis models — Gemini response schema and derived stats.

CommentAnalysisResponse doubles as the ``response_json_schema`` sent to
Gemini. AnalysisResult is what callers see after the sentiment labels
have been rewritten to their lettered form.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SentimentBucket(BaseModel):
    """Comments attributed to one viewpoint, or to the neutral catch-all."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="「意見1を支持」「意見2を支持」…「中立/その他」のいずれか")
    count: int = Field(ge=0, description="このカテゴリーに分類されたコメントの総数")


class CommentAnalysisResponse(BaseModel):
    """Structured output contract for the Gemini analysis call."""

    viewpoints: list[str] = Field(
        description="コメント群から特定した主要な意見や論点のリスト。通常は2〜4個。",
    )
    summary: str = Field(
        description="コメント欄全体の議論や雰囲気についての、中立的な立場からの短い要約。",
    )
    sentiment: list[SentimentBucket] = Field(
        description="カテゴリーごとのコメント数。数字はviewpointsのインデックス+1に対応する。",
    )


class AnalysisResult(BaseModel):
    """Normalised outcome of one analyzer call. Replaced wholesale per run."""

    model_config = ConfigDict(frozen=True)

    summary: str
    sentiment: list[SentimentBucket] = Field(default_factory=list)
    viewpoints: list[str] = Field(default_factory=list)


class ViewpointStat(BaseModel):
    """One viewpoint joined with its bucket count and share of all buckets."""

    label: str
    viewpoint: str
    count: int = 0
    percentage: int = 0


class NeutralStat(BaseModel):
    """The neutral/other bucket with its share of all buckets."""

    label: str
    count: int = 0
    percentage: int = 0
