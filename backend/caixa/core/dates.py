"""Datas no fuso de São Paulo, chaves e rótulos de mês em pt-BR."""
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from caixa.config import settings

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)

DateLike = Union[date, datetime, str]


def _tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def now_local() -> datetime:
    return datetime.now(_tz())


def today() -> date:
    return now_local().date()


def to_local(dt: datetime) -> datetime:
    """Converte para o fuso local; datetime sem tzinfo é tratado como UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(_tz())


def parse_month(value: DateLike) -> date:
    """Aceita 'YYYY-MM', 'YYYY-MM-DD', date ou datetime; devolve o dia 1 do mês."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.replace(day=1)
    text = (value or "").strip()
    if len(text) == 7:
        text = f"{text}-01"
    return date.fromisoformat(text[:10]).replace(day=1)


def parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def month_start(value: Optional[DateLike] = None) -> date:
    return parse_month(value if value is not None else today())


def month_end(value: Optional[DateLike] = None) -> date:
    start = month_start(value)
    if start.month == 12:
        nxt = date(start.year + 1, 1, 1)
    else:
        nxt = date(start.year, start.month + 1, 1)
    return nxt - timedelta(days=1)


def month_key(value: DateLike) -> str:
    return parse_month(value).strftime("%Y-%m")


def month_label(value: DateLike) -> str:
    """date(2025, 3, 10) -> 'março de 2025'."""
    d = parse_month(value)
    return f"{MONTH_NAMES[d.month - 1]} de {d.year}"


def format_date(value: DateLike) -> str:
    return parse_date(value).strftime("%d/%m/%Y")


def default_range(days: int = 30) -> Tuple[date, date]:
    """Últimos `days` dias incluindo hoje."""
    end = today()
    return end - timedelta(days=days - 1), end


def utcnow() -> datetime:
    """UTC sem tzinfo, no formato das colunas DateTime."""
    return datetime.now(ZoneInfo("UTC")).replace(tzinfo=None)
