from enum import Enum


class Platform(str, Enum):
    WHATSAPP = "whatsapp"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    OTHER = "other"


# Ordem de prioridade: a primeira regra que casar vence
_RULES: tuple[tuple[tuple[str, ...], Platform], ...] = (
    (("whatsapp.com",), Platform.WHATSAPP),
    (("tiktok.com",), Platform.TIKTOK),
    (("instagram.com",), Platform.INSTAGRAM),
    (("youtube.com", "youtu.be"), Platform.YOUTUBE),
)


def detect_platform(url: str) -> Platform:
    """Classifica a URL por substring. Função total: o fallback é OTHER."""
    lowered = (url or "").lower()
    for needles, platform in _RULES:
        if any(needle in lowered for needle in needles):
            return platform
    return Platform.OTHER
