"""Tolerant date handling shared by the dashboard and notification code.

Records coming from the API or from old imports may carry dates as ISO
strings, plain ``YYYY-MM-DD`` dates, ``datetime`` objects or garbage.
Everything here returns ``None`` for what cannot be understood so that
callers can treat the record as "not matching" instead of failing.
"""
from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from typing import Any, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return ``now`` as an aware datetime in the active time zone."""
    if now is None:
        return timezone.localtime()
    if timezone.is_naive(now):
        return timezone.make_aware(now)
    return now


def coerce_datetime(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Convert ``value`` to an aware datetime expressed in ``tz``.

    Naive values are interpreted as wall-clock time in ``tz``; a bare
    date means midnight of that day.
    """
    tz = tz or timezone.get_current_timezone()
    if value is None or value == '':
        return None
    dt: Optional[datetime]
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        try:
            dt = parse_datetime(raw)
            if dt is None:
                d = parse_date(raw)
                dt = datetime.combine(d, time.min) if d else None
        except ValueError:
            return None
    else:
        return None
    if dt is None:
        return None
    if timezone.is_naive(dt):
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def day_start(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def combine_heure(day: Optional[datetime], heure: Optional[str]) -> Optional[datetime]:
    """Attach an ``HH:MM`` time-of-day to ``day``; ``None`` when unusable."""
    if day is None or not heure:
        return None
    try:
        hours, minutes = str(heure).strip().split(':')[:2]
        return datetime.combine(day.date(), time(int(hours), int(minutes)), tzinfo=day.tzinfo)
    except (TypeError, ValueError):
        return None
