"""
app/services/snapshots.py

SnapshotStore: série temporal append-only de contagens por canal.

Contrato:
- append() nunca altera snapshots existentes
- latest() é o de maior created_at; empate resolvido pelo maior id
- falhas de escrita viram PersistenceError
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import PersistenceError
from app.models.snapshot import Snapshot

_NEWEST_FIRST = (Snapshot.created_at.desc(), Snapshot.id.desc())


class SnapshotStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        channel_id: str,
        follower_count: int | None = None,
        raw_text: str = "",
        error: str | None = None,
        created_at: datetime | None = None,
    ) -> Snapshot:
        if follower_count is not None and error is not None:
            raise ValueError("A snapshot carries either a follower count or an error")
        if follower_count is not None and follower_count < 0:
            raise ValueError("follower_count must be >= 0")

        snapshot = Snapshot(
            channel_id=channel_id,
            follower_count=follower_count,
            raw_text=raw_text or "",
            error=error,
        )
        if created_at is not None:
            snapshot.created_at = created_at

        self.session.add(snapshot)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store snapshot: {e}") from e
        return snapshot

    async def latest(self, channel_id: str) -> Snapshot | None:
        stmt = (
            select(Snapshot)
            .where(Snapshot.channel_id == channel_id)
            .order_by(*_NEWEST_FIRST)
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def latest_count(self, channel_id: str) -> int | None:
        """Última contagem conhecida, ignorando snapshots de erro ou sem match."""
        stmt = (
            select(Snapshot.follower_count)
            .where(
                Snapshot.channel_id == channel_id,
                Snapshot.follower_count.is_not(None),
            )
            .order_by(*_NEWEST_FIRST)
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def history(self, channel_id: str, limit: int = 100) -> list[Snapshot]:
        """Os `limit` snapshots mais recentes, em ordem cronológica."""
        stmt = (
            select(Snapshot)
            .where(Snapshot.channel_id == channel_id)
            .order_by(*_NEWEST_FIRST)
            .limit(limit)
        )
        rows = (await self.session.scalars(stmt)).all()
        return list(reversed(rows))
