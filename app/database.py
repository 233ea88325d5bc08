"""
Database connection, pooled session management and unit-of-work execution.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, settings
from app.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_engine(config: Settings) -> Engine:
    """Create the engine for the configured database with a bounded pool."""
    if config.is_sqlite:
        # Single shared connection so in-memory databases survive across sessions.
        return create_engine(
            config.database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=config.app_debug,
        )
    return create_engine(
        config.database_url,
        pool_pre_ping=True,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_timeout=config.db_pool_timeout,
        pool_recycle=config.db_pool_recycle,
        connect_args={"connect_timeout": config.db_connect_timeout},
        echo=config.app_debug,
    )


engine: Engine = build_engine(settings)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


class SessionProvider:
    """
    Runs units of work against sessions drawn from the pool.

    ``execute`` runs a single operation and commits it. ``execute_tx`` runs the
    whole unit inside one transaction at the configured isolation level and
    rolls back when the unit raises. The session is released on every path.
    """

    def __init__(self, session_factory: sessionmaker, tx_isolation_level: Optional[str] = None):
        self._session_factory = session_factory
        self._tx_isolation_level = tx_isolation_level

    @contextmanager
    def _acquire(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def execute(self, work: Callable[[Session], T], operation: str = "execute") -> T:
        with self._acquire() as session:
            try:
                result = work(session)
                session.commit()
            except SQLAlchemyError as exc:
                raise PersistenceError(str(exc), operation=operation) from exc
            return result

    def execute_tx(self, work: Callable[[Session], T], operation: str = "execute_tx") -> T:
        with self._acquire() as session:
            try:
                if self._tx_isolation_level:
                    session.connection(
                        execution_options={"isolation_level": self._tx_isolation_level}
                    )
                result = work(session)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.debug(f"Transaction rolled back in {operation}: {exc}")
                raise PersistenceError(str(exc), operation=operation) from exc
            except BaseException:
                session.rollback()
                logger.debug(f"Transaction rolled back in {operation}")
                raise
            return result


provider = SessionProvider(SessionLocal, settings.db_tx_isolation_level)


def get_session_provider() -> SessionProvider:
    """
    Dependency for getting the shared session provider.
    """
    return provider


def init_db(bind: Engine | None = None) -> None:
    """
    Initialize database by registering models and creating tables.
    """
    from app.models import Base

    Base.metadata.create_all(bind=bind or engine)


def dispose_engine() -> None:
    engine.dispose()


def _probe(session: Session) -> str:
    session.execute(text("SELECT 1"))
    return session.get_bind().dialect.name


def database_health(session_provider: SessionProvider | None = None) -> dict[str, Any]:
    """
    Return structured database health details.
    """
    try:
        dialect = (session_provider or provider).execute(_probe, operation="health_check")
    except PersistenceError as exc:
        logger.error(f"Health check failed: {exc}")
        return {
            "ok": False,
            "error": exc.message,
        }
    return {
        "ok": True,
        "dialect": dialect,
    }
