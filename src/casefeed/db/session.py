"""
Engine and session management.

The engine owns a bounded connection pool. Every read borrows one
connection for the duration of a request and returns it on every exit path.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from casefeed.config import FeedSettings
from casefeed.db.models import Base


def create_engine_from_settings(settings: FeedSettings, **kwargs) -> Engine:
    """
    Create a pooled engine from settings.

    Pool checkout waits at most ``settings.pool_timeout`` seconds and then
    raises ``sqlalchemy.exc.TimeoutError`` instead of blocking.
    """
    url = make_url(settings.database_url)
    options = {
        "poolclass": QueuePool,
        "pool_size": settings.pool_size,
        "max_overflow": settings.max_overflow,
        "pool_timeout": settings.pool_timeout,
        "pool_recycle": settings.pool_recycle,
        "pool_pre_ping": True,
    }
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    options.update(kwargs)
    return create_engine(url, **options)


def init_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


class SessionManager:
    """
    Manages ORM sessions for write operations.
    """

    def __init__(
        self,
        engine: Engine,
        session_factory: sessionmaker | None = None,
    ) -> None:
        """
        Initialize the session manager.

        Args:
            engine: SQLAlchemy engine
            session_factory: Optional pre-configured session factory
        """
        self.engine = engine
        self._session_factory = session_factory or sessionmaker(
            engine,
            expire_on_commit=False,
        )

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for sessions.

        Automatically commits on success and rolls back on error.
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
