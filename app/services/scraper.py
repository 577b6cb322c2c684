"""
app/services/scraper.py

Orquestra a atualização dos canais: fetch → extração → persistência → notificação.

Dois fluxos:
- refresh_one(url)  — atualização manual; cria o canal se for novo e propaga erros
- refresh_all()     — lote (cron) sobre todos os canais ativos, com isolamento
                      por canal: uma falha vira um snapshot de erro e o lote segue

Estados de um canal no lote:
    Pending → Fetching → {Extracted | FetchFailed} → Persisted

Mesmo a falha gera snapshot, para manter a série contínua e auditável.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.channel import Channel
from app.push.dispatcher import PushDispatcher
from app.scraping.extractor import ExtractionResult, extract_followers
from app.scraping.fetcher import PageFetcher, normalize_url
from app.services.channels import ChannelStore
from app.services.goals import count_changed, goal_reached
from app.services.snapshots import SnapshotStore

log = logging.getLogger(__name__)

# Estratégia alternativa (ex.: extração via IA), chamada só quando a cascata falha
FallbackExtractor = Callable[[str, str], Awaitable[ExtractionResult | None]]

# (user_id, título, corpo, url)
Notification = tuple[str, str, str, str]


class ChannelScraper:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        fetcher: PageFetcher,
        dispatcher: PushDispatcher | None = None,
        fallback: FallbackExtractor | None = None,
        concurrency: int | None = None,
        notify_on_change: bool | None = None,
    ):
        self.session_factory = session_factory
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.fallback = fallback
        self.concurrency = concurrency or settings.refresh_concurrency
        self.notify_on_change = (
            notify_on_change if notify_on_change is not None else settings.notify_on_change
        )
        # Serializa lotes sobrepostos (cron externo + worker interno)
        self._lock = asyncio.Lock()

    # -----------------------------------------------------------------------
    # Observação: fetch + extração
    # -----------------------------------------------------------------------

    async def observe(self, url: str) -> ExtractionResult:
        html = await self.fetcher.fetch(url)
        result = extract_followers(html, url)

        if not result.found and self.fallback is not None:
            alternate = await self.fallback(html, url)
            if alternate is not None and alternate.found:
                return alternate
        return result

    # -----------------------------------------------------------------------
    # Atualização manual
    # -----------------------------------------------------------------------

    async def refresh_one(self, url: str, user_id: str | None = None) -> dict:
        target = normalize_url(url)
        log.info(f"Atualizando {target}")
        result = await self.observe(target)
        scraped_at = datetime.now(timezone.utc)

        async with self.session_factory() as session:
            async with session.begin():
                channels = ChannelStore(session)
                snapshots = SnapshotStore(session)

                channel, created = await channels.find_or_create(target, user_id)
                previous = None if created else await snapshots.latest_count(channel.id)

                channels.apply_extraction(channel, result)
                await snapshots.append(
                    channel.id,
                    result.follower_count,
                    result.raw_text,
                    created_at=scraped_at,
                )
                notifications = self._notifications(channel, previous, result.follower_count)

        await self._notify(notifications)
        return {
            **result.to_dict(),
            "scrapedAt": scraped_at.isoformat(),
            "channelId": channel.id,
        }

    # -----------------------------------------------------------------------
    # Lote (cron)
    # -----------------------------------------------------------------------

    async def refresh_all(self) -> list[dict]:
        async with self._lock:
            async with self.session_factory() as session:
                active = [(c.id, c.url) for c in await ChannelStore(session).list_active()]

            if not active:
                return []

            log.info(f"Atualizando {len(active)} canais ativos")
            semaphore = asyncio.Semaphore(self.concurrency)

            async def isolated(url: str) -> tuple[ExtractionResult | None, Exception | None]:
                async with semaphore:
                    try:
                        return await self.observe(url), None
                    except Exception as e:
                        log.error(f"Falha ao atualizar {url}: {e}", exc_info=True)
                        return None, e

            outcomes = await asyncio.gather(*(isolated(url) for _, url in active))

            # Persistência sequencial: cada canal na sua própria transação
            results = []
            for (channel_id, _), (result, error) in zip(active, outcomes):
                results.append(await self._record(channel_id, result, error))
            return results

    async def _record(
        self,
        channel_id: str,
        result: ExtractionResult | None,
        error: Exception | None,
    ) -> dict:
        notifications: list[Notification] = []
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    channel = await ChannelStore(session).get(channel_id)
                    if channel is None:
                        return {"channel_id": channel_id, "error": "Channel not found"}

                    snapshots = SnapshotStore(session)
                    if error is not None:
                        message = str(error) or type(error).__name__
                        await snapshots.append(channel_id, error=message)
                        return {"channel_id": channel_id, "error": message}

                    previous = await snapshots.latest_count(channel_id)
                    ChannelStore.apply_extraction(channel, result)
                    await snapshots.append(channel_id, result.follower_count, result.raw_text)
                    notifications = self._notifications(channel, previous, result.follower_count)
        except Exception as e:
            log.error(f"Falha ao gravar snapshot do canal {channel_id}: {e}", exc_info=True)
            return {"channel_id": channel_id, "error": str(e)}

        await self._notify(notifications)
        return {"channel_id": channel_id, **result.to_dict()}

    # -----------------------------------------------------------------------
    # Notificações
    # -----------------------------------------------------------------------

    def _notifications(
        self, channel: Channel, previous: int | None, current: int | None
    ) -> list[Notification]:
        if self.dispatcher is None or not channel.user_id:
            return []

        name = channel.display_name
        if goal_reached(previous, current, channel.follower_goal):
            return [(
                channel.user_id,
                "Goal reached 🎉",
                f"{name} just hit {current:,} followers.",
                channel.url,
            )]
        if self.notify_on_change and count_changed(previous, current):
            return [(
                channel.user_id,
                "Follower update",
                f"{name}: {current - previous:+,} followers ({current:,} total)",
                channel.url,
            )]
        return []

    async def _notify(self, notifications: list[Notification]) -> None:
        for user_id, title, body, url in notifications:
            try:
                await self.dispatcher.send(user_id, title, body, url)
            except Exception as e:
                # A notificação nunca derruba a atualização já gravada
                log.error(f"Falha ao notificar {user_id}: {e}", exc_info=True)
