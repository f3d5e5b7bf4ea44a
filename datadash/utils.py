import math
import re
import zlib
from typing import Any, Optional

import numpy as np

# quotes, thousands separators, whitespace and common currency marks
_NOISE_RE = re.compile(r"[\"',\s $₹€£¥]|Rs\.?|INR", flags=re.I)
_PLACEHOLDERS = {"", "-", "--", "nan", "none", "null", "n/a", "na"}


def parse_number(value: Any) -> Optional[float]:
    """Parse ``value`` as a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        f = float(value)
        return f if math.isfinite(f) else None
    s = str(value).strip()
    if s.lower() in _PLACEHOLDERS:
        return None
    cleaned = _NOISE_RE.sub("", s)
    if not cleaned or cleaned.lower() in _PLACEHOLDERS:
        return None
    try:
        f = float(cleaned)
    except ValueError:
        return None
    return f if np.isfinite(f) else None


def lenient_number(value: Any) -> float:
    """Lenient numeric parse: formatting noise is stripped, failures count as 0."""
    f = parse_number(value)
    return 0.0 if f is None else f


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def as_text(value: Any) -> str:
    if is_empty(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def stable_hash(text: str) -> int:
    return zlib.crc32(str(text).encode("utf-8"))
