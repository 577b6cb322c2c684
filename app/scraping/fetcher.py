"""
app/scraping/fetcher.py

Busca o HTML de uma página de perfil. Fronteira de I/O, sem regra de negócio.

- Normaliza a URL (https:// quando falta o esquema, whatsapp.com → www.whatsapp.com)
- Um único GET com cabeçalhos de navegador (alguns sites variam o conteúdo por eles)
- Timeout fixo e sem nova tentativa; timeout e erros de transporte viram FetchError
- Erros de conexão podem ser repetidos até FETCH_RETRIES vezes (padrão 0)
- Status fora de 2xx ou corpo vazio/curto demais também viram FetchError
"""

import logging
from urllib.parse import urlsplit, urlunsplit

import httpx

from app.config import settings
from app.errors import FetchError

log = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,de;q=0.8",
}


def normalize_url(url: str) -> str:
    url = (url or "").strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    parts = urlsplit(url)
    # whatsapp.com sem www redireciona para uma página sem os meta tags do canal
    if parts.netloc.lower() == "whatsapp.com":
        parts = parts._replace(netloc="www.whatsapp.com")
    return urlunsplit(parts)


class PageFetcher:
    def __init__(
        self,
        timeout: float | None = None,
        min_length: int | None = None,
        retries: int | None = None,
    ):
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.min_length = min_length if min_length is not None else settings.min_html_length
        self.retries = retries if retries is not None else settings.fetch_retries

    async def fetch(self, url: str) -> str:
        """Retorna o HTML bruto de `url` ou levanta FetchError."""
        target = normalize_url(url)

        attempt = 0
        while True:
            try:
                return await self._get(target)
            except httpx.TimeoutException as e:
                raise FetchError(f"Timed out fetching {target}: {e!r}") from e
            except httpx.TransportError as e:
                # Só falhas de conexão são repetidas; timeout e status HTTP são definitivos
                if attempt >= self.retries:
                    raise FetchError(f"Failed to fetch {target}: {e!r}") from e
                attempt += 1
                log.warning(f"Falha de rede em {target} ({e!r}), tentativa {attempt}")

    async def _get(self, url: str) -> str:
        async with httpx.AsyncClient(
            headers=BROWSER_HEADERS,
            follow_redirects=True,
        ) as client:
            resp = await client.get(url, timeout=self.timeout)

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Failed to fetch page: HTTP {resp.status_code}",
                status_code=resp.status_code,
            ) from e

        html = resp.text or ""
        if len(html.strip()) < self.min_length:
            raise FetchError(f"Page returned too little content ({len(html)} characters)")
        return html
