from __future__ import annotations
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field
from voke.errors import ConfigurationError

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    # Core
    environment: str = "dev"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/app.log"

    # Postgres - individual settings (the hosted project's database)
    postgres_host: str | None = None
    postgres_port: int = 5432
    postgres_db: str = "postgres"
    postgres_user: str = "postgres"
    postgres_password: str = ""  # service credential, MUST be set in .env

    # Postgres - direct DSN override (for Docker / pooled connection strings)
    postgres_dsn_override: str | None = None

    # Completion provider
    groq_api_key: str | None = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    chat_model: str = "llama-3.3-70b-versatile"
    chat_temperature: float = 0.7
    chat_max_tokens: int = 2000
    trends_temperature: float = 0.7
    llm_timeout_seconds: float = 60.0
    llm_max_retries: int = 0  # surface 429/402 to the caller instead of retrying

    # Prompt enrichment
    history_session_limit: int = 5

    # HTTP
    cors_allow_origins: list[str] = ["*"]

    @computed_field
    @property
    def postgres_dsn(self) -> str | None:
        if self.postgres_dsn_override:
            return self.postgres_dsn_override
        if not self.postgres_host or not self.postgres_password:
            return None
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"\
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def is_prod(self) -> bool:
        return self.environment.lower() == "prod"

    def require_groq_api_key(self) -> str:
        if not self.groq_api_key:
            raise ConfigurationError("GROQ_API_KEY is not configured")
        return self.groq_api_key

    def require_postgres_dsn(self) -> str:
        dsn = self.postgres_dsn
        if not dsn:
            raise ConfigurationError(
                "Database is not configured (set POSTGRES_DSN_OVERRIDE or POSTGRES_HOST and POSTGRES_PASSWORD)"
            )
        return dsn

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Allow overriding .env via explicit environment variables
    return Settings()  # pydantic-settings handles precedence

settings = get_settings()

__all__ = ["Settings", "get_settings", "settings"]
