from datetime import date, datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

__all__ = [
    "day_name",
    "is_yesterday",
    "last_days",
    "next_midnight",
    "parse_day",
    "window_start",
]


def parse_day(val: object) -> date | None:
    """Parse a stored day value (ISO date, ISO timestamp, epoch, or loose text).

    Documents written by older versions may carry full timestamps or
    locale-formatted strings; anything unparseable becomes None.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, (int, float)):
        # epoch milliseconds
        seconds = val / 1000 if val > 1e11 else val
        try:
            return datetime.fromtimestamp(seconds).date()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(val, str) or not val.strip():
        return None
    text = val.strip()
    try:
        return date.fromisoformat(text.split("T")[0])
    except ValueError:
        pass
    try:
        return dateutil_parser.parse(text).date()
    except (ParserError, ValueError, OverflowError):
        return None


def is_yesterday(day: date | None, now: datetime) -> bool:
    return day is not None and day == now.date() - timedelta(days=1)


def window_start(now: datetime, days: int) -> date:
    """Oldest day still inside a trailing window of `days` days."""
    return now.date() - timedelta(days=days)


def last_days(now: datetime, count: int) -> list[date]:
    """The `count` calendar days ending today, oldest first."""
    today = now.date()
    return [today - timedelta(days=i) for i in range(count - 1, -1, -1)]


def next_midnight(now: datetime) -> datetime:
    tomorrow = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, datetime.min.time(), tzinfo=now.tzinfo)


def day_name(day: date) -> str:
    return day.strftime("%a")
