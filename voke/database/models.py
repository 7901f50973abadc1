import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewSession(Base):
    __tablename__ = 'interview_sessions'

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(100), nullable=False, index=True)
    interview_type = Column(String(30), nullable=False)  # general, technical, behavioral, resume, role-specific
    job_profile_id = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default="in_progress")  # in_progress, completed
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class VideoInterviewSession(Base):
    __tablename__ = 'video_interview_sessions'

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="uploading")  # uploading, analyzing, completed
    overall_score = Column(Integer, nullable=True)  # 0-100
    video_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class JobMarketTrend(Base):
    __tablename__ = 'job_market_trends'

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Market data
    trending_skills = Column(JSON, nullable=False, default=list)
    salary_range = Column(String(100), nullable=True)
    demand_level = Column(String(10), nullable=False)  # high, medium, low
    growth_rate = Column(String(100), nullable=True)
    key_companies = Column(JSON, nullable=False, default=list)
    preparation_tips = Column(JSON, nullable=False, default=list)

    last_updated = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
