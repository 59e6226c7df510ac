"""SQLAlchemy-backed storage implementation."""

from .storage_sql import SQLStorage

__all__ = ["SQLStorage"]
