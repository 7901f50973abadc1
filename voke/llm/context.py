from __future__ import annotations
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str


class InterviewType(str, Enum):
    GENERAL = "general"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    RESUME = "resume"
    ROLE_SPECIFIC = "role-specific"
    ADAPTIVE = "adaptive"


class SkillGap(BaseModel):
    """A skill the candidate should work on, as produced by career guidance."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    skill: str
    importance: str = "medium"
    learning_resource: str = Field(default="", alias="learningResource")


class HistorySummary(BaseModel):
    """
    Aggregates of the caller's previous practice sessions.

    `degraded` is set when at least one history lookup failed and the counts
    only reflect what could be loaded.
    """
    model_config = ConfigDict(frozen=True)

    text_session_count: int = 0
    video_session_count: int = 0
    average_video_score: Optional[int] = None
    degraded: bool = False
