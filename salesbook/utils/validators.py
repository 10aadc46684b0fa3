# utils/validators.py
import math
from datetime import date


def non_empty(text) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)

    ok == False means parsing failed (or the value is NaN/inf) and value is None.
    """
    if isinstance(x, bool) or x is None:
        return False, None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return False, None
    if not math.isfinite(v):
        return False, None
    return True, v


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)


def is_strictly_positive_number(x) -> bool:
    """
    True iff x parses to a float and value > 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val > 0)


def is_iso_day(text) -> bool:
    """True for 'YYYY-MM-DD' strings that name a real calendar day."""
    if not isinstance(text, str) or len(text.strip()) != 10:
        return False
    try:
        date.fromisoformat(text.strip())
    except ValueError:
        return False
    return True
