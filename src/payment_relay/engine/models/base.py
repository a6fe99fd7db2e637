"""Declarative base and shared column mixins."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    type_annotation_map = {  # noqa: RUF012
        dict[str, Any]: JSON,
    }


class TimestampMixin:
    """Created / updated timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )


class MetadataMixin:
    """Open key-value JSON bag stored in a ``metadata`` column."""

    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    def get_metadata(self, key: str, default: Any = None) -> Any:
        """Get metadata value by key."""
        metadata = self.metadata_ or {}
        return metadata.get(key, default)

    def merge_metadata(self, updates: dict[str, Any]) -> None:
        """Merge *updates* into the stored bag. Existing keys not in *updates* survive.

        A new dict is assigned so the plain JSON column registers the change.
        """
        self.metadata_ = {**(self.metadata_ or {}), **updates}
