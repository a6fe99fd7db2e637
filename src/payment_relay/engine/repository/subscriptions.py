"""Push subscription store."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from payment_relay.engine.models.push_subscription import PushSubscription
from payment_relay.engine.repository.base import session_scope

if TYPE_CHECKING:
    from collections.abc import Iterable

    from payment_relay.datastore.client import Datastore


class SubscriptionStore:
    """Durable list of push endpoints, with the deletes used for pruning."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def list_all(self) -> list[PushSubscription]:
        """Return every stored subscription."""
        async with session_scope(self._ds, "subscription list") as session:
            result = await session.execute(
                select(PushSubscription).order_by(PushSubscription.created_at)
            )
            return list(result.scalars().all())

    async def count(self) -> int:
        """Number of stored subscriptions."""
        async with session_scope(self._ds, "subscription count") as session:
            result = await session.execute(select(func.count()).select_from(PushSubscription))
            return int(result.scalar_one())

    async def upsert(
        self,
        endpoint: str,
        p256dh: str,
        auth: str,
        *,
        user_id: str | None = None,
    ) -> PushSubscription:
        """Insert a subscription or refresh the keys of an existing endpoint."""
        async with session_scope(self._ds, "subscription upsert") as session:
            result = await session.execute(
                select(PushSubscription).where(PushSubscription.endpoint == endpoint)
            )
            sub = result.scalar_one_or_none()
            if sub is None:
                sub = PushSubscription(
                    id=str(uuid.uuid4()),
                    endpoint=endpoint,
                    p256dh=p256dh,
                    auth=auth,
                    user_id=user_id,
                )
                session.add(sub)
            else:
                sub.p256dh = p256dh
                sub.auth = auth
                if user_id:
                    sub.user_id = user_id
            await session.commit()
            await session.refresh(sub)
            return sub

    async def delete_by_endpoint(self, endpoint: str) -> bool:
        """Delete a subscription by endpoint. Returns True if one was deleted."""
        async with session_scope(self._ds, "subscription delete") as session:
            result = await session.execute(
                delete(PushSubscription).where(PushSubscription.endpoint == endpoint)
            )
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]

    async def delete_many(self, subscription_ids: Iterable[str]) -> int:
        """Delete a batch of subscriptions by id. Returns the number removed."""
        ids = list(subscription_ids)
        if not ids:
            return 0
        async with session_scope(self._ds, "subscription prune") as session:
            result = await session.execute(
                delete(PushSubscription).where(PushSubscription.id.in_(ids))
            )
            await session.commit()
            return result.rowcount  # type: ignore[union-attr]
