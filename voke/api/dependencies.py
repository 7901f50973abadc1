from typing import Callable
from fastapi import Depends
from sqlalchemy.orm import sessionmaker
from voke.config import Settings, get_settings
from voke.database import connection

SessionProvider = Callable[[], sessionmaker]


def get_session_provider(settings: Settings = Depends(get_settings)) -> SessionProvider:
    """
    Deferred access to the configured database.

    FastAPI resolves dependencies before it validates the body, so the DSN is
    only checked when a handler calls the provider. A malformed request gets
    its 400 even when the database is not configured.
    """
    def provide() -> sessionmaker:
        return connection.get_session_factory(settings.require_postgres_dsn())
    return provide
