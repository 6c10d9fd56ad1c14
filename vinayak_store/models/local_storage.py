"""
Local storage model

A plain key/value table. One row per storage key; the cart lives under
settings.CART_STORAGE_KEY as a JSON document.
"""
from sqlalchemy import Column, String, Text, DateTime

from vinayak_store.core.database import Base
from vinayak_store.core.utils import utcnow


class LocalStorageEntry(Base):
    __tablename__ = "local_storage"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<LocalStorageEntry key={self.key!r}>"
