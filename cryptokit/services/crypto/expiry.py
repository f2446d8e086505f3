"""
Expiry resolution for bearer tokens.

An expiry spec may be seconds from now (int/float), a timedelta, an absolute
datetime, a relative shorthand ("24hrs", "30mns", "2 hours", "15m") or an
absolute date string (ISO-8601, RFC 2822, or month-first dates such as
"12/31/2026", "12-31-2026", "December 31, 2026" and "Dec 31 2026").
"""

import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional, Union

from .errors import InvalidExpirySpec

Clock = Callable[[], datetime]
ExpirySpec = Union[int, float, str, timedelta, datetime]

_SHORTHAND_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*([a-zA-Z]+)\s*$")

_UNIT_SECONDS = {
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "mn": 60, "mns": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
}

_DATE_FORMATS = ("%m/%d/%Y", "%m-%d-%Y", "%B %d, %Y", "%b %d, %Y", "%B %d %Y", "%b %d %Y")
_TIME_FORMATS = ("", " %H:%M", " %H:%M:%S")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_shorthand(text: str) -> Optional[timedelta]:
    match = _SHORTHAND_RE.match(text)
    if not match:
        return None
    amount, unit = match.groups()
    factor = _UNIT_SECONDS.get(unit.lower())
    if factor is None:
        return None
    return timedelta(seconds=float(amount) * factor)


def _parse_iso(text: str) -> datetime:
    # fromisoformat only accepts a trailing Z from 3.11 on
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _parse_date(text: str) -> Optional[datetime]:
    text = text.strip()
    try:
        return as_utc(_parse_iso(text))
    except ValueError:
        pass
    try:
        return as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass
    for date_format in _DATE_FORMATS:
        for time_format in _TIME_FORMATS:
            try:
                return as_utc(datetime.strptime(text, date_format + time_format))
            except ValueError:
                continue
    return None


def resolve_expiry(spec: ExpirySpec, now: Optional[datetime] = None) -> datetime:
    """
    Turn an expiry spec into an absolute UTC timestamp.

    Args:
        spec: Seconds from now, timedelta, datetime, shorthand or date string
        now: Reference time (default: current UTC time)

    Returns:
        Aware UTC datetime

    Raises:
        InvalidExpirySpec: If the spec cannot be interpreted
    """
    now = as_utc(now) if now is not None else utc_now()

    # bool is an int subclass but never a meaningful duration
    if isinstance(spec, bool):
        raise InvalidExpirySpec("Expiry cannot be a boolean")
    try:
        if isinstance(spec, (int, float)):
            return now + timedelta(seconds=spec)
        if isinstance(spec, timedelta):
            return now + spec
        if isinstance(spec, datetime):
            return as_utc(spec)
        if isinstance(spec, str):
            delta = _parse_shorthand(spec)
            if delta is not None:
                return now + delta
            absolute = _parse_date(spec)
            if absolute is not None:
                return absolute
            raise InvalidExpirySpec(f"Unrecognized expiry: {spec!r}")
    except InvalidExpirySpec:
        raise
    except (OverflowError, ValueError) as e:
        raise InvalidExpirySpec(f"Expiry out of range: {spec!r}") from e

    raise InvalidExpirySpec(f"Unsupported expiry type: {type(spec).__name__}")


def format_expiry(expires_at: datetime) -> str:
    """Render an expiry timestamp as ISO-8601 UTC"""
    return as_utc(expires_at).isoformat()


def parse_expiry(text: str) -> datetime:
    """
    Parse an expiry written by ``format_expiry``.

    Raises:
        ValueError: If the text is not an ISO-8601 timestamp
    """
    return as_utc(_parse_iso(text))
