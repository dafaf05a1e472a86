"""
Declarative base and the columns every ampet-core table shares.

Rows carry a UUID key, server-side timestamps, the id of the profile that
created or last changed them, and a soft-delete flag. Queries over live rows
filter with ``Model.create_query_filter_active()``.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    # Renders as UUID on PostgreSQL and CHAR(32) elsewhere
    type_annotation_map = {
        uuid.UUID: UUID(as_uuid=True),
    }


class BaseModel(Base):
    """Abstract parent of the profile and pet tables."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column()
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column()

    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_deleted: Mapped[bool] = mapped_column(default=False, server_default=false())

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id})>"

    def soft_delete(self, deleted_by: Optional[uuid.UUID] = None) -> None:
        """Flag the row as deleted; the caller's transaction persists it."""
        self.is_deleted = True
        self.deleted_at = datetime.now(timezone.utc)
        if deleted_by is not None:
            self.updated_by = deleted_by

    @classmethod
    def create_query_filter_active(cls):
        """``WHERE`` clause matching rows that are not soft-deleted."""
        return cls.is_deleted.is_(False)
