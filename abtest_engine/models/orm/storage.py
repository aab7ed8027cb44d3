from datetime import datetime

from sqlalchemy import Column, DateTime, PrimaryKeyConstraint, String, Text

from .base import Base


class StoredValueORM(Base):
    """One entry of a visitor's key-value store, partitioned by session."""

    __tablename__ = "visitor_storage"

    session_id = Column(String, nullable=False, index=True)
    key = Column(String, nullable=False)
    value = Column(Text, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("session_id", "key", name="visitor_storage_pk"),
    )
