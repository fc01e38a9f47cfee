"""Declarative base shared by the report engine's tables."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer

from lims_reports.database import Base


def utcnow() -> datetime:
    """Current UTC time, naive, as every DateTime column stores it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel(Base):
    """
    Abstract base for every table: an integer key plus row timestamps.

    ``updated_at`` moves on ORM flushes and on the services' compare-and-set
    ``UPDATE`` statements alike. Subclasses name their own table.
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        if getattr(self, "id", None) is not None:
            return f"<{self.__class__.__name__}(id={self.id})>"
        return f"<{self.__class__.__name__}>"
