"""
Date helpers pinned to the report timezone (America/Sao_Paulo by default).

Timestamps are stored in UTC; everything shown to operators or grouped
by day is converted here first.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from tracker_app.config import settings

DateLike = Union[datetime, str]


def report_zone(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.report_timezone)


def _as_aware(value: DateLike) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # Naive datetimes from the database are UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_local(value: DateLike, tz_name: Optional[str] = None) -> datetime:
    return _as_aware(value).astimezone(report_zone(tz_name))


def format_datetime(value: DateLike, tz_name: Optional[str] = None) -> str:
    """dd/mm/yyyy hh:mm:ss"""
    return to_local(value, tz_name).strftime("%d/%m/%Y %H:%M:%S")


def format_date(value: DateLike, tz_name: Optional[str] = None) -> str:
    """dd/mm/yyyy"""
    return to_local(value, tz_name).strftime("%d/%m/%Y")


def format_time(value: DateLike, tz_name: Optional[str] = None) -> str:
    """hh:mm"""
    return to_local(value, tz_name).strftime("%H:%M")


def local_date_key(value: DateLike, tz_name: Optional[str] = None) -> str:
    """ISO date (YYYY-MM-DD) of an instant as seen in the report timezone."""
    return to_local(value, tz_name).date().isoformat()


def today_start(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> datetime:
    """Local midnight of the current day, returned in UTC for queries."""
    zone = report_zone(tz_name)
    local_now = _as_aware(now or datetime.now(timezone.utc)).astimezone(zone)
    midnight = datetime.combine(local_now.date(), time.min, tzinfo=zone)
    return midnight.astimezone(timezone.utc)


def days_ago_start(days: int, tz_name: Optional[str] = None, now: Optional[datetime] = None) -> datetime:
    """Local midnight `days` days before today, in UTC."""
    zone = report_zone(tz_name)
    local_now = _as_aware(now or datetime.now(timezone.utc)).astimezone(zone)
    day: date = local_now.date() - timedelta(days=days)
    return datetime.combine(day, time.min, tzinfo=zone).astimezone(timezone.utc)


def last_n_days(days: int, tz_name: Optional[str] = None, now: Optional[datetime] = None) -> list:
    """ISO dates of the last `days` local days, oldest first, ending today."""
    local_today = _as_aware(now or datetime.now(timezone.utc)).astimezone(report_zone(tz_name)).date()
    return [(local_today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
