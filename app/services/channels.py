"""
app/services/channels.py

Acesso aos canais rastreados: busca por URL, criação sob demanda e
atualização dos campos derivados da extração (nome e plataforma).
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import PersistenceError
from app.models.channel import Channel
from app.scraping.extractor import UNKNOWN_CHANNEL, ExtractionResult
from app.scraping.platforms import detect_platform


class ChannelStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, channel_id: str) -> Channel | None:
        return await self.session.get(Channel, channel_id)

    async def find_by_url(self, url: str, user_id: str | None = None) -> Channel | None:
        stmt = select(Channel).where(Channel.url == url)
        if user_id is None:
            stmt = stmt.where(Channel.user_id.is_(None))
        else:
            stmt = stmt.where(Channel.user_id == user_id)
        return await self.session.scalar(stmt.limit(1))

    async def find_or_create(self, url: str, user_id: str | None = None) -> tuple[Channel, bool]:
        channel = await self.find_by_url(url, user_id)
        if channel:
            return channel, False

        channel = Channel(
            url=url,
            user_id=user_id,
            platform=detect_platform(url).value,
        )
        self.session.add(channel)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not create channel: {e}") from e
        return channel, True

    async def list_active(self) -> list[Channel]:
        stmt = select(Channel).where(Channel.is_active.is_(True)).order_by(Channel.created_at)
        return list((await self.session.scalars(stmt)).all())

    @staticmethod
    def apply_extraction(channel: Channel, result: ExtractionResult) -> None:
        # O nome só é sobrescrito quando a extração achou um nome concreto
        if result.channel_name and result.channel_name != UNKNOWN_CHANNEL:
            channel.display_name = result.channel_name
        channel.platform = result.platform.value
