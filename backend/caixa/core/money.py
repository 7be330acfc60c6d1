"""Valores monetários em centavos (int) e formatação em reais."""
import math
import re
from decimal import Decimal, ROUND_HALF_UP

_CURRENCY_PREFIX = re.compile(r"R\$\s?")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def reais_to_cents(reais) -> int:
    """Reais (float/str/Decimal) -> centavos, arredondando meio para cima."""
    value = reais if isinstance(reais, Decimal) else Decimal(str(reais or "0"))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_reais(cents: int) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(Decimal("0.01"))


def format_currency(cents: int) -> str:
    """12345 -> 'R$ 123,45'; negativos como '-R$ 10,00'."""
    cents = int(cents or 0)
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    milhares = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {milhares},{centavos:02d}"


def parse_currency(formatted: str) -> int:
    """'R$ 1.234,56' -> 123456. Lê o número do início ('12abc' -> 1200); sem número vira 0."""
    cleaned = _CURRENCY_PREFIX.sub("", formatted or "").strip()
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return 0
    return reais_to_cents(Decimal(match.group()))


def format_percent(value: float, digits: int = 1) -> str:
    return f"{value:.{digits}f}%".replace(".", ",")


def round_half_up(value: float) -> int:
    """Arredondamento comercial (2.5 -> 3), diferente do round() do Python."""
    return math.floor(value + 0.5)
