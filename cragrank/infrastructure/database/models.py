"""SQLAlchemy ORM models -- generic document table backing the record store."""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


def _utcnow():
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
DocumentData = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Records (routes, route logs, users)
# ---------------------------------------------------------------------------

class RecordModel(Base):
    __tablename__ = "records"

    path = Column(String(512), primary_key=True)
    collection = Column(String(512), nullable=False)
    group_name = Column(String(64), nullable=False)
    doc_id = Column(String(128), nullable=False)
    data = Column(DocumentData, nullable=False, default=dict)
    revision = Column(String(32), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_records_collection", "collection"),
        Index("idx_records_group", "group_name"),
    )
