from sqlalchemy import Column, Text, DateTime, Integer, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from .base import Base, now_utc


class Document(Base):
    """A schemaless record stored inside a named collection.

    ``pk`` only exists to give rows a stable insertion order; records are
    addressed by ``(collection, id)``. ``version`` is bumped on every flush so
    a write based on a stale read fails with ``StaleDataError``.
    """
    __tablename__ = 'documents'
    pk = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(Text, nullable=False)
    id = Column(Text, nullable=False)
    body = Column(JSONB, nullable=False, default=dict)
    version = Column(Integer, nullable=False, server_default='1')
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('collection', 'id', name='uq_documents_collection_id'),
        Index('ix_documents_collection_pk', 'collection', 'pk'),
    )
    __mapper_args__ = {"version_id_col": version}
