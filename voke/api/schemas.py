from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from voke.llm.context import ChatMessage, InterviewType, SkillGap
from voke.trends.schemas import TrendRecord

class InterviewChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage]
    interview_type: Optional[InterviewType] = Field(default=None, alias="interviewType")
    resume_content: Optional[str] = Field(default=None, alias="resumeContent")

class AdaptiveChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage]
    user_id: str = Field(alias="userId", min_length=1)
    skill_gaps: Optional[List[SkillGap]] = Field(default=None, alias="skillGaps")

class TrendResearchRequest(BaseModel):
    category: str = Field(min_length=1)

class TrendsResponse(BaseModel):
    success: bool = True
    trends: List[TrendRecord]

class StoredTrendsResponse(BaseModel):
    category: str
    trends: List[TrendRecord]

class ErrorResponse(BaseModel):
    error: str
