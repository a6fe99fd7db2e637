"""Notification template repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from payment_relay.engine.models.notification_template import NotificationTemplate
from payment_relay.engine.repository.base import session_scope

if TYPE_CHECKING:
    from payment_relay.datastore.client import Datastore


class TemplateRepository:
    """Reads templates for the dispatcher, writes them for the settings routes."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def get_active(self, event_type: str) -> NotificationTemplate | None:
        """Return the template for *event_type* if it exists and is active."""
        async with session_scope(self._ds, "template lookup") as session:
            result = await session.execute(
                select(NotificationTemplate).where(
                    NotificationTemplate.event_type == event_type,
                    NotificationTemplate.is_active.is_(True),
                )
            )
            return result.scalar_one_or_none()

    async def list_all(self) -> list[NotificationTemplate]:
        """Return every template ordered by event type."""
        async with session_scope(self._ds, "template list") as session:
            result = await session.execute(
                select(NotificationTemplate).order_by(NotificationTemplate.event_type)
            )
            return list(result.scalars().all())

    async def upsert(
        self,
        event_type: str,
        *,
        title: str,
        message: str,
        kind: str = "info",
        is_active: bool = True,
    ) -> NotificationTemplate:
        """Create or replace the template for *event_type*."""
        async with session_scope(self._ds, "template upsert") as session:
            template = await session.get(NotificationTemplate, event_type)
            if template is None:
                template = NotificationTemplate(event_type=event_type)
                session.add(template)
            template.title = title
            template.message = message
            template.kind = kind
            template.is_active = is_active
            await session.commit()
            await session.refresh(template)
            return template
