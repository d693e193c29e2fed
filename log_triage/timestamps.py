"""Log Triage - Timestamp resolution

Every resolved instant is a timezone-aware UTC datetime, so values taken
from ISO, CLF and syslog lines can be compared with each other. Naive
inputs are read as UTC.
"""

from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dateparser

from .patterns import CLF_TIME_FORMAT, SYSLOG_PREFIX, SYSLOG_TIME_FORMAT


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_timestamp(text: Optional[str], reference_year: Optional[int] = None) -> Optional[datetime]:
    """Turn a raw timestamp string into a UTC datetime, or None if it can't be read.

    Syslog stamps (``Nov 06 09:12:04``) carry no year; ``reference_year``
    fills it in and defaults to the current year.
    """
    if not text or not text.strip():
        return None
    text = text.strip()
    year = reference_year or datetime.now().year

    try:
        return _to_utc(datetime.strptime(text, CLF_TIME_FORMAT))
    except (ValueError, OverflowError):
        pass

    try:
        # fixed default keeps missing fields deterministic
        return _to_utc(dateparser.parse(text, default=datetime(year, 1, 1)))
    except (ValueError, OverflowError):
        pass

    match = SYSLOG_PREFIX.match(text)
    if match:
        try:
            return _to_utc(datetime.strptime(f"{match.group(0)} {year}", SYSLOG_TIME_FORMAT))
        except ValueError:
            return None
    return None
