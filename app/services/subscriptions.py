from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import PersistenceError
from app.models.push_subscription import PushSubscription


class SubscriptionStore:
    """Subscriptions Web Push, únicas por (user_id, endpoint)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def for_user(self, user_id: str) -> list[PushSubscription]:
        stmt = (
            select(PushSubscription)
            .where(PushSubscription.user_id == user_id)
            .order_by(PushSubscription.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def upsert(
        self, user_id: str, endpoint: str, p256dh: str, auth: str
    ) -> tuple[PushSubscription, bool]:
        stmt = select(PushSubscription).where(
            PushSubscription.user_id == user_id,
            PushSubscription.endpoint == endpoint,
        )
        existing = await self.session.scalar(stmt)
        if existing:
            # O navegador pode rotacionar as chaves mantendo o endpoint
            existing.p256dh = p256dh
            existing.auth = auth
            created, sub = False, existing
        else:
            sub = PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
            self.session.add(sub)
            created = True

        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store push subscription: {e}") from e
        return sub, created

    async def remove(self, user_id: str, endpoint: str | None = None) -> int:
        stmt = delete(PushSubscription).where(PushSubscription.user_id == user_id)
        if endpoint is not None:
            stmt = stmt.where(PushSubscription.endpoint == endpoint)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_ids(self, ids: list[int]) -> int:
        if not ids:
            return 0
        result = await self.session.execute(
            delete(PushSubscription).where(PushSubscription.id.in_(ids))
        )
        return result.rowcount or 0
