# utils/helpers.py
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

from ..constants import BUSINESS_TIMEZONE

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)

BUSINESS_TZ = ZoneInfo(BUSINESS_TIMEZONE)


def now_local() -> datetime:
    """Current wall-clock time in the business timezone."""
    return datetime.now(BUSINESS_TZ)


def today_str() -> str:
    """Return today's business date as ISO string (YYYY-MM-DD)."""
    return now_local().date().isoformat()


def day_key(value: Any) -> Optional[str]:
    """
    Normalize a date-ish value to a 'YYYY-MM-DD' calendar day in the business timezone.

    Accepted inputs:
      - 'YYYY-MM-DD' strings: already a calendar day, returned unchanged.
      - ISO datetime strings ('2025-01-31T18:30:00Z', '...+08:00').
      - date / datetime objects.

    Naive datetimes are taken as UTC. Anything unparseable returns None, which
    callers treat as "matches no day".
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value.isoformat()
    else:
        text = str(value).strip()
        if not text:
            return None
        if len(text) == 10:
            try:
                return date.fromisoformat(text).isoformat()
            except ValueError:
                return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            _log.debug("day_key: cannot parse %r", value)
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(BUSINESS_TZ).date().isoformat()


def month_key(value: Any) -> Optional[str]:
    """'YYYY-MM' for the business-timezone day of `value`, or None."""
    key = day_key(value)
    return key[:7] if key else None


def to_float(x: Optional[Any]) -> float:
    """Lenient numeric coercion: None, '', garbage, NaN and infinities all become 0.0."""
    if isinstance(x, bool):
        return float(x)
    try:
        v = float(x or 0.0)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def id_key(value: Any) -> str:
    """
    Canonical string form of an identifier.

    Foreign keys arrive as ints locally and as strings from the cloud, and
    floats like 3.0 from JSON imports; all compare equal here.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def fmt_money(
    v: NumberLike,
    places: int = 2,
    *,
    strict: bool = False,
    sentinel: Optional[str] = None,
) -> str:
    """
    Format a number as money with thousands separators and a fixed number of decimals.

    Behavior on parse failure:
      - By default returns str(v).
      - If `sentinel` is provided (e.g., "N/A"), returns that sentinel instead.
      - If `strict=True`, raises ValueError.
    """
    try:
        x = float(v)
    except (TypeError, ValueError) as e:
        _log.debug("fmt_money: failed to parse %r as float: %s", v, e)
        if strict:
            raise ValueError(f"Could not parse {v!r} as a number.") from e
        return str(sentinel) if sentinel is not None else str(v)
    return f"{x:,.{places}f}"
