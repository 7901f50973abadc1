from typing import List, Dict, Optional
import math
import time
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from voke.llm.context import HistorySummary
from voke.logger import get_logger
from .connection import session_scope
from .models import InterviewSession, VideoInterviewSession

logger = get_logger(__name__)


class SessionHistoryQueries:
    """Read-only lookups of a user's previous practice sessions."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_recent_interview_sessions(self, user_id: str, limit: int = 5) -> List[Dict]:
        """Most recent text interview sessions, newest first."""
        logger.debug(f"[DB] Fetching recent interview sessions for user {user_id} (limit={limit})")
        query = (
            select(InterviewSession)
            .where(InterviewSession.user_id == user_id)
            .order_by(InterviewSession.created_at.desc())
            .limit(limit)
        )
        with session_scope(self.session_factory) as session:
            rows = session.scalars(query).all()
            return [
                {
                    "id": row.id,
                    "interview_type": row.interview_type,
                    "status": row.status,
                    "created_at": row.created_at,
                }
                for row in rows
            ]

    def get_recent_completed_video_sessions(self, user_id: str, limit: int = 5) -> List[Dict]:
        """Most recent completed video sessions, newest first."""
        logger.debug(f"[DB] Fetching recent completed video sessions for user {user_id} (limit={limit})")
        query = (
            select(VideoInterviewSession)
            .where(VideoInterviewSession.user_id == user_id)
            .where(VideoInterviewSession.status == "completed")
            .order_by(VideoInterviewSession.created_at.desc())
            .limit(limit)
        )
        with session_scope(self.session_factory) as session:
            rows = session.scalars(query).all()
            return [
                {
                    "id": row.id,
                    "overall_score": row.overall_score,
                    "created_at": row.created_at,
                }
                for row in rows
            ]


def average_score(video_sessions: List[Dict]) -> Optional[int]:
    """Mean overall score rounded half up; sessions without a score count as 0."""
    if not video_sessions:
        return None
    mean = sum(s.get("overall_score") or 0 for s in video_sessions) / len(video_sessions)
    return math.floor(mean + 0.5)


def load_history_summary(queries: SessionHistoryQueries, user_id: str, limit: int = 5) -> HistorySummary:
    """
    Summarize the user's past sessions for prompt enrichment.

    Each lookup is independent; a failed lookup is logged and marks the summary
    as degraded instead of failing the request.
    """
    start_time = time.perf_counter()
    degraded = False

    try:
        text_sessions = queries.get_recent_interview_sessions(user_id, limit=limit)
    except SQLAlchemyError as e:
        logger.warning(f"[HISTORY] Error fetching past sessions for user {user_id}: {e}")
        text_sessions = []
        degraded = True

    try:
        video_sessions = queries.get_recent_completed_video_sessions(user_id, limit=limit)
    except SQLAlchemyError as e:
        logger.warning(f"[HISTORY] Error fetching video sessions for user {user_id}: {e}")
        video_sessions = []
        degraded = True

    summary = HistorySummary(
        text_session_count=len(text_sessions),
        video_session_count=len(video_sessions),
        average_video_score=average_score(video_sessions),
        degraded=degraded,
    )
    duration = (time.perf_counter() - start_time) * 1000
    status = "DEGRADED" if degraded else "ok"
    logger.info(
        f"[HISTORY] Summary loaded | user={user_id} | status={status} | text={summary.text_session_count} "
        f"| video={summary.video_session_count} | avg_score={summary.average_video_score} | duration={duration:.0f}ms"
    )
    return summary
