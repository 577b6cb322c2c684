import re
from decimal import ROUND_HALF_UP, Decimal

_SHORT_NUMBER = re.compile(r"^(\d+(?:\.\d+)?)\s*([KkMmBb])?$")

_MULTIPLIERS = {
    "": 1,
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


def parse_short_number(text: str) -> int | None:
    """
    Converte números abreviados em inteiros: "15.4K" → 15400, "1.2M" → 1200000,
    "15,400" → 15400. Retorna None quando o token não tem esse formato.
    """
    cleaned = re.sub(r"[,\s]", "", text or "")
    match = _SHORT_NUMBER.match(cleaned)
    if not match:
        return None

    # Decimal evita que 1.15K vire 1149 por erro de ponto flutuante
    value = Decimal(match.group(1)) * _MULTIPLIERS[(match.group(2) or "").upper()]
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
