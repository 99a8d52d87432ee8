"""
SQLAlchemy models for the document store.

Exposes `Base`, `now_utc` and the ORM classes.
"""

from .base import Base, now_utc  # re-export
from .documents import Document

__all__ = [
    "Base",
    "now_utc",
    "Document",
]
