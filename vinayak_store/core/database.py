"""
Local storage database configuration and session management

The cart is device-scoped state, so it lives in a small key/value database
next to the storefront process rather than in the shared document store.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from vinayak_store.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_local_engine(url: Optional[str] = None) -> Engine:
    """Build an engine for the local store, creating the sqlite directory if needed."""
    url = url or settings.LOCAL_STORAGE_URL
    parsed = make_url(url)
    engine_kwargs = {"echo": settings.DEBUG, "future": True}

    if parsed.get_backend_name() == "sqlite":
        database = parsed.database
        if not database or database == ":memory:":
            # One shared connection so every session sees the same in-memory db
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    return create_engine(url, **engine_kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


def init_local_storage(engine: Engine) -> None:
    """Create local storage tables if they do not exist."""
    # Import models so they register on Base.metadata
    from vinayak_store.models import local_storage  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.debug("Local storage tables ensured on %s", engine.url)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Transactional scope around a series of operations.

    Usage:
        with session_scope(factory) as session:
            session.add(...)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
