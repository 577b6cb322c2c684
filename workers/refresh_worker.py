"""
workers/refresh_worker.py

Disparo periódico interno de refresh_all().

Opcional: por padrão o lote é disparado por um cron externo via
POST /analyze {"mode": "cron"}. Com REFRESH_INTERVAL_MINUTES > 0 o lifespan
inicia este worker. Lotes sobrepostos são serializados pelo lock do scraper.
"""

import asyncio
import logging

from app.config import settings
from app.services.scraper import ChannelScraper

log = logging.getLogger(__name__)

MIN_INTERVAL_MINUTES = 15


def interval_seconds() -> int:
    return max(settings.refresh_interval_minutes, MIN_INTERVAL_MINUTES) * 60


async def run_once(scraper: ChannelScraper) -> list[dict]:
    results = await scraper.refresh_all()
    failed = sum(1 for r in results if "error" in r)
    log.info(f"Lote concluído: {len(results)} canais, {failed} com erro")
    return results


async def run_worker(scraper: ChannelScraper) -> None:
    log.info(f"Worker de atualização iniciado (a cada {interval_seconds() // 60} min)")
    while True:
        await asyncio.sleep(interval_seconds())
        try:
            await run_once(scraper)
        except Exception as e:
            log.error(f"Erro no worker: {e}", exc_info=True)
