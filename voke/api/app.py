from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import platform
import time
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
import openai
from voke.config import Settings, get_settings, settings as startup_settings
from voke.database.connection import mask_dsn
from voke.database.queries import SessionHistoryQueries, load_history_summary
from voke.database.trend_store import TrendStore
from voke.errors import InputValidationError, VokeError
from voke.llm.completion_proxy import CompletionProxy
from voke.llm.prompts import PromptBuilder
from voke.logger import get_logger
from voke.trends.research import TrendResearcher
from .dependencies import SessionProvider, get_session_provider
from .helpers import (
    SSE_HEADERS,
    error_response,
    new_request_id,
    unexpected_error_response,
    validation_error_message,
)
from .schemas import (
    AdaptiveChatRequest,
    InterviewChatRequest,
    StoredTrendsResponse,
    TrendResearchRequest,
    TrendsResponse,
)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Voke interview API...")
    if not startup_settings.groq_api_key:
        logger.warning("GROQ_API_KEY is not configured; chat and trend endpoints will fail until it is set")
    yield
    logger.info("Shutting down Voke interview API...")

app = FastAPI(title="Voke Interview API", version="0.1.0", docs_url="/docs", lifespan=lifespan)

# CORS middleware - browser pages call the endpoints directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=startup_settings.cors_allow_origins,
    # Browsers reject a wildcard origin on credentialed requests
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(InputValidationError(validation_error_message(exc)))


@app.exception_handler(VokeError)
async def voke_error_handler(request: Request, exc: VokeError):
    return error_response(exc)


@app.post("/interview-chat")
async def interview_chat(request: InterviewChatRequest, settings: Settings = Depends(get_settings)):
    """
    Text interview chat. Relays the provider's SSE stream verbatim.
    """
    request_id = new_request_id()
    start_time = time.perf_counter()
    interview_type = request.interview_type.value if request.interview_type else "none"

    logger.info("[API] " + "="*60)
    logger.info(f"[API] REQUEST START | id={request_id} | endpoint=interview-chat | type={interview_type} | messages={len(request.messages)} | resume={bool(request.resume_content)}")

    try:
        proxy = CompletionProxy(settings)
        system_prompt = PromptBuilder.build_interview_prompt(request.interview_type, request.resume_content)
        messages = PromptBuilder.build_messages(system_prompt, request.messages)
        relay = await proxy.open_stream(messages, request_id=request_id)
    except VokeError as e:
        return error_response(e, request_id, start_time)
    except Exception as e:
        return unexpected_error_response(e, request_id, start_time)

    logger.info(f"[API] Starting SSE relay | id={request_id}")
    # Runs after the response ends, including on disconnect before the first chunk
    return StreamingResponse(relay, media_type="text/event-stream", headers=SSE_HEADERS, background=BackgroundTask(relay.aclose))


@app.post("/adaptive-interview-chat")
async def adaptive_interview_chat(
    request: AdaptiveChatRequest,
    settings: Settings = Depends(get_settings),
    session_provider: SessionProvider = Depends(get_session_provider),
):
    """
    Adaptive interview chat biased by the caller's skill gaps and practice history.
    """
    request_id = new_request_id()
    start_time = time.perf_counter()

    logger.info("[API] " + "="*60)
    logger.info(f"[API] REQUEST START | id={request_id} | endpoint=adaptive-interview-chat | user={request.user_id} | messages={len(request.messages)} | skill_gaps={len(request.skill_gaps or [])}")

    try:
        proxy = CompletionProxy(settings)
        history = load_history_summary(
            SessionHistoryQueries(session_provider()),
            request.user_id,
            limit=settings.history_session_limit,
        )
        system_prompt = PromptBuilder.build_adaptive_prompt(request.skill_gaps, history)
        messages = PromptBuilder.build_messages(system_prompt, request.messages)
        relay = await proxy.open_stream(messages, request_id=request_id)
    except VokeError as e:
        return error_response(e, request_id, start_time)
    except Exception as e:
        return unexpected_error_response(e, request_id, start_time)

    logger.info(f"[API] Starting SSE relay | id={request_id} | history_degraded={history.degraded}")
    return StreamingResponse(relay, media_type="text/event-stream", headers=SSE_HEADERS, background=BackgroundTask(relay.aclose))


@app.post("/research-job-trends", response_model=TrendsResponse)
async def research_job_trends(
    request: TrendResearchRequest,
    settings: Settings = Depends(get_settings),
    session_provider: SessionProvider = Depends(get_session_provider),
):
    """
    Research market trends for a category and replace its stored trends.
    """
    request_id = new_request_id()
    start_time = time.perf_counter()

    logger.info("[API] " + "="*60)
    logger.info(f"[API] REQUEST START | id={request_id} | endpoint=research-job-trends | category={request.category}")

    try:
        researcher = TrendResearcher(CompletionProxy(settings), TrendStore(session_provider()))
        records = await researcher.research(request.category, request_id=request_id)
    except VokeError as e:
        return error_response(e, request_id, start_time)
    except Exception as e:
        return unexpected_error_response(e, request_id, start_time)

    total_duration = (time.perf_counter() - start_time) * 1000
    logger.info(f"[API] REQUEST COMPLETE | id={request_id} | trends={len(records)} | total={total_duration:.0f}ms")
    logger.info("[API] " + "="*60)
    return TrendsResponse(success=True, trends=records)


@app.get("/job-trends/{category}", response_model=StoredTrendsResponse)
async def stored_job_trends(category: str, session_provider: SessionProvider = Depends(get_session_provider)):
    request_id = new_request_id()
    start_time = time.perf_counter()
    try:
        records = TrendStore(session_provider()).list_category(category)
    except VokeError as e:
        return error_response(e, request_id, start_time)
    except Exception as e:
        return unexpected_error_response(e, request_id, start_time)
    logger.info(f"[API] Stored trends served | id={request_id} | category={category} | trends={len(records)}")
    return StoredTrendsResponse(category=category, trends=records)


@app.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    logger.debug("Health check requested")
    dsn = settings.postgres_dsn
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "debug": settings.debug,
        "python_version": platform.python_version(),
        "openai_version": getattr(openai, "__version__", "unknown"),
        "postgres": {"dsn_masked": mask_dsn(dsn) if dsn else None},
        "llm": {
            "base_url": settings.groq_base_url,
            "model": settings.chat_model,
            "api_key_configured": bool(settings.groq_api_key),
        },
    }
