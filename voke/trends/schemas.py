from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, field_validator


class TrendEntry(BaseModel):
    """One trend as written by the model, before it is tagged with a category."""
    model_config = ConfigDict(extra="ignore")

    title: str
    description: str = ""
    trending_skills: List[str] = []
    salary_range: Optional[str] = None
    demand_level: Literal["high", "medium", "low"]
    growth_rate: Optional[str] = None
    key_companies: List[str] = []
    preparation_tips: List[str] = []

    @field_validator("demand_level", mode="before")
    @classmethod
    def normalize_demand_level(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("trending_skills")
    @classmethod
    def dedupe_skills(cls, v: List[str]) -> List[str]:
        # A set of skills, kept in the order the model listed them
        return list(dict.fromkeys(v))


class TrendsDocument(BaseModel):
    trends: List[TrendEntry]


class TrendRecord(TrendEntry):
    """A stored trend row."""
    model_config = ConfigDict(from_attributes=True)

    category: str
    last_updated: datetime
