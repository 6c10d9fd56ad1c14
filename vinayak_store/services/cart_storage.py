"""
Durable local cart persistence

The cart is written through on every mutation under one fixed storage key.
A payload that fails to parse is logged and treated as an empty cart.
"""
import logging
from typing import List, Optional, Protocol, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from vinayak_store.core.config import settings
from vinayak_store.core.database import (
    create_local_engine,
    create_session_factory,
    init_local_storage,
    session_scope,
)
from vinayak_store.models.local_storage import LocalStorageEntry
from vinayak_store.schemas.cart import CART_LINES_ADAPTER, CartLine

logger = logging.getLogger(__name__)


class CartStorage(Protocol):
    def load(self) -> List[CartLine]:
        ...

    def save(self, lines: Sequence[CartLine]) -> None:
        ...


def serialize_lines(lines: Sequence[CartLine]) -> str:
    return CART_LINES_ADAPTER.dump_json(list(lines)).decode("utf-8")


def deserialize_lines(payload: Optional[str], key: str) -> List[CartLine]:
    """Parse a stored payload; corrupt data falls back to an empty cart."""
    if not payload:
        return []
    try:
        return CART_LINES_ADAPTER.validate_json(payload)
    except ValidationError as e:
        logger.warning(
            "Discarding unreadable cart payload key=%s errors=%d",
            key,
            e.error_count(),
        )
        return []


class InMemoryCartStorage:
    """Holds the serialized cart in memory. Same parse rules as the durable store."""

    def __init__(self, key: Optional[str] = None, payload: Optional[str] = None):
        self.key = key or settings.CART_STORAGE_KEY
        self.payload = payload

    def load(self) -> List[CartLine]:
        return deserialize_lines(self.payload, self.key)

    def save(self, lines: Sequence[CartLine]) -> None:
        self.payload = serialize_lines(lines)


class SqlCartStorage:
    """Cart stored as a JSON document in the local key/value table."""

    def __init__(self, session_factory: sessionmaker, key: Optional[str] = None):
        self._session_factory = session_factory
        self.key = key or settings.CART_STORAGE_KEY

    @classmethod
    def from_url(cls, url: Optional[str] = None, key: Optional[str] = None) -> "SqlCartStorage":
        """Build storage on its own engine, creating the table if needed."""
        engine = create_local_engine(url)
        init_local_storage(engine)
        return cls(create_session_factory(engine), key=key)

    def load(self) -> List[CartLine]:
        try:
            with session_scope(self._session_factory) as session:
                entry = session.get(LocalStorageEntry, self.key)
                payload = entry.value if entry is not None else None
        except SQLAlchemyError:
            logger.exception("Failed to read cart from local storage key=%s", self.key)
            return []
        return deserialize_lines(payload, self.key)

    def save(self, lines: Sequence[CartLine]) -> None:
        payload = serialize_lines(lines)
        try:
            with session_scope(self._session_factory) as session:
                session.merge(LocalStorageEntry(key=self.key, value=payload))
        except SQLAlchemyError:
            logger.exception("Failed to write cart to local storage key=%s", self.key)
            return
        logger.debug("Saved cart key=%s lines=%d", self.key, len(lines))
