from openai import AsyncOpenAI
from voke.config import Settings
from voke.logger import get_logger

logger = get_logger(__name__)

# Shared client instances (lazy initialization), keyed by credential and endpoint
_groq_clients: dict[tuple[str, str], AsyncOpenAI] = {}

def get_groq_client(settings: Settings) -> AsyncOpenAI:
    """
    Get or create a shared async client for the Groq OpenAI-compatible API.
    Raises ConfigurationError when no API key is configured, before anything is created.
    """
    api_key = settings.require_groq_api_key()
    key = (api_key, settings.groq_base_url)
    client = _groq_clients.get(key)
    if client is None:
        logger.debug(f"[LLM] Initializing Groq client | base_url={settings.groq_base_url}")
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=settings.groq_base_url,
            timeout=settings.llm_timeout_seconds,
            max_retries=settings.llm_max_retries,
        )
        _groq_clients[key] = client
    return client
