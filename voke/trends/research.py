from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional
import json
import re
import time
from pydantic import ValidationError
from voke.database.trend_store import TrendStore
from voke.errors import TrendParseError
from voke.llm.completion_proxy import CompletionProxy
from voke.llm.prompts import PromptBuilder
from voke.logger import get_logger
from .schemas import TrendEntry, TrendRecord, TrendsDocument

logger = get_logger(__name__)

FENCED_JSON_PATTERN = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")
PARSE_FAILED_MESSAGE = "Failed to parse trends data"


def extract_trend_payload(text: str) -> dict:
    """
    Pull the JSON object out of a model answer.

    A fenced code block wins; otherwise the whole answer must be JSON.
    """
    match = FENCED_JSON_PATTERN.search(text)
    candidate = match.group(1) if match else text.strip()
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.error(f"[TRENDS] Failed to parse AI response | fenced={match is not None} | error={e}")
        raise TrendParseError(PARSE_FAILED_MESSAGE, cause=e) from e

    if not isinstance(payload, dict):
        logger.error(f"[TRENDS] AI response is not a JSON object | type={type(payload).__name__}")
        raise TrendParseError(PARSE_FAILED_MESSAGE)
    return payload


def parse_trend_entries(text: str) -> List[TrendEntry]:
    payload = extract_trend_payload(text)
    try:
        return TrendsDocument.model_validate(payload).trends
    except ValidationError as e:
        logger.error(f"[TRENDS] Trends document failed validation | errors={e.error_count()}")
        raise TrendParseError(PARSE_FAILED_MESSAGE, cause=e) from e


class TrendResearcher:
    """Researches a job category with one completion and replaces its stored trends."""

    def __init__(self, proxy: CompletionProxy, store: TrendStore):
        self.proxy = proxy
        self.store = store

    async def research(self, category: str, request_id: str = "unknown", now: Optional[datetime] = None) -> List[TrendRecord]:
        start_time = time.perf_counter()
        logger.info(f"[TRENDS] Researching job trends | id={request_id} | category={category}")

        prompt = PromptBuilder.build_trends_prompt(category)
        answer = await self.proxy.complete([{"role": "user", "content": prompt}], request_id=request_id)
        logger.debug(f"[TRENDS] AI response: {answer[:200]}")

        # Parse before touching the store so a bad answer never removes rows
        entries = parse_trend_entries(answer)
        last_updated = now or datetime.now(timezone.utc)
        records = [
            TrendRecord(**entry.model_dump(), category=category, last_updated=last_updated)
            for entry in entries
        ]
        self.store.replace_category(category, records)

        duration = (time.perf_counter() - start_time) * 1000
        logger.info(f"[TRENDS] Successfully updated job market trends | id={request_id} | category={category} | trends={len(records)} | total={duration:.0f}ms")
        return records
