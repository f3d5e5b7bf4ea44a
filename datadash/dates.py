"""Date normalisation.

Every component parses dates through :func:`normalize_date`, which turns the
heterogeneous values found in uploaded sheets into canonical ``YYYY-MM-DD``
strings (or ``None`` when the value is not a usable date).
"""
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

import numpy as np
import pandas as pd

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .constants import MONTH_NAMES

CANONICAL_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY_RE = re.compile(r"^(\d{1,2})([-/])(\d{1,2})\2(\d{4})$")
_DMY_SHORT_RE = re.compile(r"^(\d{1,2})([-/])(\d{1,2})\2(\d{2})$")
_YMD_RE = re.compile(r"^(\d{4})([-/])(\d{1,2})\2(\d{1,2})$")
_DIGITS_RE = re.compile(r"^\d+(\.\d+)?$")
_YEAR_RE = re.compile(r"(?<!\d)\d{4}(?!\d)")

# spreadsheet day 0; absorbs the phantom 1900-02-29 for serials after March 1900
SERIAL_EPOCH = date(1899, 12, 30)

_MONTH_LOOKUP = {name.lower(): i + 1 for i, name in enumerate(MONTH_NAMES)}
_MONTH_LOOKUP.update({name[:3].lower(): i + 1 for i, name in enumerate(MONTH_NAMES)})


def _build(year: int, month: int, day: int, cfg: EngineConfig) -> Optional[str]:
    if not (cfg.min_year <= year <= cfg.max_year):
        return None
    try:
        d = date(year, month, day)
    except ValueError:
        # day 31 in a 30-day month and friends
        return None
    return d.isoformat()


def _from_serial(serial: float, cfg: EngineConfig) -> Optional[str]:
    if not (cfg.serial_min < serial < cfg.serial_max):
        return None
    d = SERIAL_EPOCH + timedelta(days=int(math.floor(serial)))
    return _build(d.year, d.month, d.day, cfg)


def _expand_year(two_digits: int, cfg: EngineConfig) -> int:
    return two_digits + (2000 if two_digits < cfg.two_digit_year_pivot else 1900)


def _from_string(text: str, cfg: EngineConfig) -> Optional[str]:
    s = text.strip()
    if not s:
        return None

    if CANONICAL_RE.match(s):
        return _build(int(s[:4]), int(s[5:7]), int(s[8:10]), cfg)

    m = _DMY_RE.match(s)
    if m:
        first, sep, second, year = int(m.group(1)), m.group(2), int(m.group(3)), int(m.group(4))
        out = _build(year, second, first, cfg)
        if out is None and sep == "/":
            # MM/DD/YYYY when the day-first reading does not round-trip
            out = _build(year, first, second, cfg)
        return out

    m = _DMY_SHORT_RE.match(s)
    if m:
        year = _expand_year(int(m.group(4)), cfg)
        return _build(year, int(m.group(3)), int(m.group(1)), cfg)

    m = _YMD_RE.match(s)
    if m:
        return _build(int(m.group(1)), int(m.group(3)), int(m.group(4)), cfg)

    if _DIGITS_RE.match(s) or not _YEAR_RE.search(s):
        # bare numbers, words ("March") and times ("10:45") carry no year
        return None

    try:
        parsed = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return _build(parsed.year, parsed.month, parsed.day, cfg)


def normalize_date(value: Any, config: Optional[EngineConfig] = None) -> Optional[str]:
    """Return the canonical ``YYYY-MM-DD`` form of ``value`` or ``None``."""
    cfg = config or DEFAULT_ENGINE_CONFIG
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return _build(value.year, value.month, value.day, cfg)
    if isinstance(value, (datetime, date)):
        return _build(value.year, value.month, value.day, cfg)
    if isinstance(value, (int, float, np.integer, np.floating)):
        f = float(value)
        if not math.isfinite(f):
            return None
        return _from_serial(f, cfg)
    return _from_string(str(value), cfg)


def to_date(canonical: str) -> date:
    return date(int(canonical[:4]), int(canonical[5:7]), int(canonical[8:10]))


def week_start(canonical: str) -> str:
    d = to_date(canonical)
    # date.weekday(): Monday=0 .. Sunday=6
    return (d - timedelta(days=(d.weekday() + 1) % 7)).isoformat()


def month_key(canonical: str) -> str:
    return canonical[:7]


def month_name(canonical: str) -> str:
    return MONTH_NAMES[int(canonical[5:7]) - 1]


def parse_month_name(text: Any) -> Optional[int]:
    """Month number for a full or three-letter English month name."""
    if text is None:
        return None
    return _MONTH_LOOKUP.get(str(text).strip().lower())
