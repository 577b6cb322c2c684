"""
app/scraping/extractor.py

Extração determinística da contagem de seguidores a partir do HTML bruto.

Fluxo:
1. Detecta a plataforma pela URL
2. Resolve o nome do canal: og:title → <title> → "Unknown Channel"
3. Percorre a cascata de estratégias da plataforma, em ordem fixa:
   a. regex da plataforma sobre o conteúdo de og:description / description
   b. regex genérica sobre o HTML inteiro
   c. dados estruturados JSON-LD (interactionStatistic de Follow)
4. O primeiro match cujo número é parseável vence

A regra da plataforma vem antes da genérica para que o número de "Following"
do Instagram nunca seja confundido com o de "Followers".

Nunca levanta exceção: não encontrar a contagem é um resultado válido.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from functools import cached_property

from bs4 import BeautifulSoup

from app.scraping.numbers import parse_short_number
from app.scraping.platforms import Platform, detect_platform

log = logging.getLogger(__name__)

UNKNOWN_CHANNEL = "Unknown Channel"
NOT_FOUND = "No follower count found"

# Número com separadores e sufixo opcional: 15,400 / 15.4K / 1.2M
NUMBER = r"(\d[\d,.]*[KkMmBb]?)"

GENERIC_KEYWORDS = ("followers?", "abonnenten", "subscribers?", "fans", "abonn[ée]s")
WHATSAPP_KEYWORDS = ("followers?", "members", "participants")
TIKTOK_KEYWORDS = ("followers?", "fans")
INSTAGRAM_KEYWORDS = ("followers?",)
YOUTUBE_KEYWORDS = ("subscribers?", "abonnenten", "abonn[ée]s")

META = "meta"
BODY = "body"
JSON_LD = "json-ld"


@dataclass(frozen=True)
class Matcher:
    """Um padrão "número antes da palavra-chave" ou "palavra-chave antes do número"."""

    keywords: tuple[str, ...]
    number_first: bool = True

    @cached_property
    def regex(self) -> re.Pattern:
        keyword = r"(?:" + "|".join(self.keywords) + r")"
        if self.number_first:
            return re.compile(NUMBER + r"\s*" + keyword + r"\b", re.IGNORECASE)
        return re.compile(r"\b" + keyword + r"\s*[:\s]*" + NUMBER, re.IGNORECASE)

    def finditer(self, text: str):
        return self.regex.finditer(text)


def _pair(keywords: tuple[str, ...]) -> tuple[Matcher, ...]:
    return (Matcher(keywords, number_first=True), Matcher(keywords, number_first=False))


@dataclass(frozen=True)
class Strategy:
    name: str
    scope: str
    matchers: tuple[Matcher, ...] = field(default=())


GENERIC_BODY = Strategy("generic-body", BODY, _pair(GENERIC_KEYWORDS))
STRUCTURED_DATA = Strategy("json-ld", JSON_LD)

# Instagram: "1.2M Followers, 500 Following": só "número antes de Followers"
CASCADES: dict[Platform, tuple[Strategy, ...]] = {
    Platform.WHATSAPP: (
        Strategy("whatsapp-meta", META, _pair(WHATSAPP_KEYWORDS)),
        GENERIC_BODY,
        STRUCTURED_DATA,
    ),
    Platform.TIKTOK: (
        Strategy("tiktok-meta", META, _pair(TIKTOK_KEYWORDS)),
        GENERIC_BODY,
        STRUCTURED_DATA,
    ),
    Platform.INSTAGRAM: (
        Strategy("instagram-meta", META, (Matcher(INSTAGRAM_KEYWORDS),)),
        GENERIC_BODY,
        STRUCTURED_DATA,
    ),
    Platform.YOUTUBE: (
        Strategy("youtube-meta", META, _pair(YOUTUBE_KEYWORDS)),
        GENERIC_BODY,
        STRUCTURED_DATA,
    ),
    Platform.OTHER: (
        Strategy("generic-meta", META, _pair(GENERIC_KEYWORDS)),
        GENERIC_BODY,
        STRUCTURED_DATA,
    ),
}


@dataclass(frozen=True)
class ExtractionResult:
    follower_count: int | None
    channel_name: str
    raw_text: str
    platform: Platform
    strategy: str | None = None

    @property
    def found(self) -> bool:
        return self.follower_count is not None

    def to_dict(self) -> dict:
        return {
            "followerCount": self.follower_count,
            "channelName": self.channel_name,
            "rawText": self.raw_text,
            "platform": self.platform.value,
        }


# ---------------------------------------------------------------------------
# Leitura do documento
# ---------------------------------------------------------------------------


def _meta_content(tag) -> str:
    return (tag.get("content") or "").strip()


def find_channel_name(soup: BeautifulSoup) -> str:
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and _meta_content(og_title):
        return _meta_content(og_title)

    title = soup.find("title")
    if title and title.get_text(strip=True):
        return title.get_text(strip=True)

    return UNKNOWN_CHANNEL


def find_descriptions(soup: BeautifulSoup) -> list[str]:
    """Conteúdo de og:description e description, na ordem do documento."""
    descriptions = []
    for tag in soup.find_all("meta"):
        kind = (tag.get("property") or tag.get("name") or "").lower()
        if kind in ("og:description", "description") and _meta_content(tag):
            descriptions.append(_meta_content(tag))
    return descriptions


def _iter_statistics(data):
    if isinstance(data, list):
        for item in data:
            yield from _iter_statistics(item)
        return
    if not isinstance(data, dict):
        return

    stats = data.get("interactionStatistic") or []
    yield from stats if isinstance(stats, list) else [stats]

    for nested in data.get("@graph", []) or []:
        yield from _iter_statistics(nested)


def _match_structured_data(soup: BeautifulSoup) -> tuple[int, str] | None:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue

        for stat in _iter_statistics(data):
            if not isinstance(stat, dict):
                continue
            kind = f"{stat.get('interactionType', '')} {stat.get('@type', '')}"
            if "Follow" not in kind:
                continue
            raw = str(stat.get("userInteractionCount", ""))
            count = parse_short_number(raw)
            if count is not None:
                return count, f"JSON-LD: {raw}"
    return None


def _match_text(strategy: Strategy, texts: list[str]) -> tuple[int, str] | None:
    for text in texts:
        for matcher in strategy.matchers:
            for match in matcher.finditer(text):
                count = parse_short_number(match.group(1))
                if count is not None:
                    return count, match.group(0).strip()
    return None


# ---------------------------------------------------------------------------
# API pública
# ---------------------------------------------------------------------------


def extract_followers(html: str, url: str) -> ExtractionResult:
    html = html or ""
    platform = detect_platform(url)
    soup = BeautifulSoup(html, "html.parser")
    channel_name = find_channel_name(soup)

    for strategy in CASCADES[platform]:
        if strategy.scope == META:
            found = _match_text(strategy, find_descriptions(soup))
        elif strategy.scope == BODY:
            found = _match_text(strategy, [html])
        else:
            found = _match_structured_data(soup)

        if found:
            count, raw_text = found
            log.debug(f"{strategy.name} encontrou {count} em {url}")
            return ExtractionResult(count, channel_name, raw_text, platform, strategy.name)

    return ExtractionResult(None, channel_name, NOT_FOUND, platform)
