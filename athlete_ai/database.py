"""Database connection and session management."""

from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from athlete_ai.config import get_settings


settings = get_settings()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a sync engine; SQLite connections may be shared across threads."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(
        engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )


# Default engine for the local result store
sync_engine = build_engine(settings.database_url, echo=settings.debug)

SessionLocal = build_session_factory(sync_engine)


def get_sync_db() -> Generator[Session, None, None]:
    """Get a database session that commits on success and rolls back on error."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
