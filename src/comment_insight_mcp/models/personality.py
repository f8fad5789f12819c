"""Commenter personality models — output schemas for the personality report."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PersonalityType(BaseModel):
    """One personality type found among the commenters."""

    type: str = Field(description="性格タイプ名")
    count: int = Field(ge=0, description="該当するコメント数")
    percentage: float = Field(ge=0, description="全体に占める割合")
    characteristics: list[str] = Field(default_factory=list, description="このタイプの特徴")
    examples: list[str] = Field(default_factory=list, description="実際のコメント例（一部改変可）")


class PersonalityAnalysis(BaseModel):
    """Structured output of the personality classification call."""

    distribution: list[PersonalityType] = Field(default_factory=list)
    group_dynamics: str = Field(default="", description="グループ全体の相互作用の特徴")
    conflict_potential: int = Field(default=0, ge=0, le=10, description="対立発生の可能性(0-10)")
    recommendations: list[str] = Field(
        default_factory=list, description="建設的な議論のための推奨事項",
    )


class PersonalityReport(BaseModel):
    """Classification plus the two free-text follow-ups."""

    analysis: PersonalityAnalysis
    interactions: str = ""
    strategy: str = ""
