"""
Database models for the SQL record store.
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CollectionModel(Base):
    """One row per collection that has been written at least once."""
    __tablename__ = "collections"

    name = Column(String(100), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class RecordModel(Base):
    """A schema-free record stored as a JSON document."""
    __tablename__ = "records"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(100), nullable=False, index=True)
    record_id = Column(Integer)
    data = Column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_records_collection_record", "collection", "record_id"),
    )
