from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
from contextlib import contextmanager
from typing import Generator
from voke.logger import get_logger

logger = get_logger(__name__)

# One engine and session factory per DSN, created on first use
_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def mask_dsn(dsn: str) -> str:
    """Mask password in database connection string for safe logging."""
    if "@" in dsn:
        pre, rest = dsn.rsplit("@", 1)
        scheme, sep, credentials = pre.rpartition("//")
        user = credentials.split(":", 1)[0]
        return f"{scheme}{sep}{user}:***@{rest}"
    return dsn


def get_engine(dsn: str) -> Engine:
    engine = _engines.get(dsn)
    if engine is None:
        logger.info(f"[DB] Initializing database engine for {mask_dsn(dsn)}")
        engine = create_engine(
            dsn,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            connect_args={
                "connect_timeout": 10,
                "options": "-c statement_timeout=5000",  # 5 seconds
            }
        )
        _engines[dsn] = engine
    return engine


def get_session_factory(dsn: str) -> sessionmaker:
    factory = _session_factories.get(dsn)
    if factory is None:
        factory = sessionmaker(bind=get_engine(dsn), autoflush=False, expire_on_commit=False)
        _session_factories[dsn] = factory
    return factory


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for a DB session: commits on success, rolls back on error."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"[DB] Session error, rolled back: {str(e)}")
        raise
    finally:
        session.close()
