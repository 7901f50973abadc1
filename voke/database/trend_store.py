from typing import List, Sequence
import time
from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker
from voke.logger import get_logger
from voke.trends.schemas import TrendRecord
from .connection import session_scope
from .models import JobMarketTrend

logger = get_logger(__name__)


class TrendStore:
    """
    Storage of job-market trend rows, replaced wholesale per category.

    `replace_category` deletes and inserts inside one transaction, so a failed
    insert leaves the previous rows in place. Two concurrent replaces of the same
    category can still both commit their batches (the second delete does not see
    the first one's uncommitted inserts), which leaves duplicated rows until the
    next replace.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def replace_category(self, category: str, records: Sequence[TrendRecord]) -> int:
        """Delete every row of `category`, insert `records`. Returns the number of rows removed."""
        start_time = time.perf_counter()
        with session_scope(self.session_factory) as session:
            result = session.execute(delete(JobMarketTrend).where(JobMarketTrend.category == category))
            deleted = result.rowcount or 0
            session.add_all([JobMarketTrend(**record.model_dump()) for record in records])

        duration = (time.perf_counter() - start_time) * 1000
        logger.info(f"[DB] Replaced trends | category={category} | deleted={deleted} | inserted={len(records)} | duration={duration:.0f}ms")
        return deleted

    def list_category(self, category: str) -> List[TrendRecord]:
        """Stored trends for `category`, most recently updated first."""
        query = (
            select(JobMarketTrend)
            .where(JobMarketTrend.category == category)
            .order_by(JobMarketTrend.last_updated.desc(), JobMarketTrend.id)
        )
        with session_scope(self.session_factory) as session:
            return [TrendRecord.model_validate(row) for row in session.scalars(query).all()]
