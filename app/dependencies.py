"""
app/dependencies.py

Serviços da aplicação, construídos uma vez por processo e injetados nas rotas.

Nada aqui é estado global mutável: `build_services()` monta os objetos a partir
das settings e o resultado fica em `app.state.services`.
"""

import logging
from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session_factory
from app.push.dispatcher import PushDispatcher
from app.push.vapid import VapidSigner, configured_private_key
from app.scraping.fetcher import PageFetcher
from app.services.scraper import ChannelScraper

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Services:
    session_factory: async_sessionmaker[AsyncSession]
    scraper: ChannelScraper
    dispatcher: PushDispatcher | None


def build_services(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> Services:
    session_factory = session_factory or async_session_factory

    dispatcher = None
    if configured_private_key():
        dispatcher = PushDispatcher(session_factory, VapidSigner.from_settings())
    else:
        log.warning("Chave VAPID ausente, notificações push desativadas")

    scraper = ChannelScraper(session_factory, PageFetcher(), dispatcher)
    return Services(session_factory=session_factory, scraper=scraper, dispatcher=dispatcher)


# ---------------------------------------------------------------------------
# Dependências FastAPI
# ---------------------------------------------------------------------------


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Sessão por request a partir da fábrica dos serviços.
    Commit automático em caso de sucesso e rollback em caso de exceção.
    """
    async with get_services(request).session_factory() as session:
        async with session.begin():
            yield session
