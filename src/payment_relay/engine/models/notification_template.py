"""NotificationTemplate model: per-event title/message for the secondary relay."""

from __future__ import annotations

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payment_relay.engine.models.base import Base, TimestampMixin


class NotificationTemplate(Base, TimestampMixin):
    """Template keyed by event type, e.g. ``pix_paid`` or ``boleto_generated``.

    ``title`` and ``message`` may contain ``{nome}``, ``{primeiro_nome}``,
    ``{valor}`` and ``{tipo}`` placeholders.
    """

    __tablename__ = "notification_templates"

    event_type: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    kind: Mapped[str] = mapped_column(String(32), nullable=False, default="info")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<NotificationTemplate {self.event_type} active={self.is_active}>"
