from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo
from .config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    return now_utc().astimezone(ZoneInfo(settings.timezone))


def as_utc(ts: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_instant(raw: object) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the sheet. Returns None when unparsable."""
    if isinstance(raw, datetime):
        return as_utc(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def time_label(ts: Optional[datetime]) -> str:
    """Local wall-clock label used on the chart axis and the "last update" line."""
    if ts is None:
        return "--:--"
    return as_utc(ts).astimezone(ZoneInfo(settings.timezone)).strftime("%H:%M:%S")
