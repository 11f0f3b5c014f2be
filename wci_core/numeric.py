from __future__ import annotations

import math
import re
from numbers import Number
from typing import Optional

MYRIAD = 10_000

_MYRIAD_MARKER = re.compile(r"[wW]")
# Leading float prefix; trailing garbage is ignored ("12.5abc" -> 12.5).
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_float(text: str) -> Optional[float]:
    match = _FLOAT_PREFIX.match(text.strip())
    if not match:
        return None
    out = float(match.group(0))
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def parse_number(value: object) -> float:
    """Convert one raw report cell into a number.

    Numbers pass through untouched (NaN/inf included, they are checked at the
    display boundary). Strings drop every '+', expand the myriad marker
    ("1.5w" -> 15000) and degrade to 0 when unparseable. Anything else is 0.
    """
    if isinstance(value, Number) and not isinstance(value, bool):
        return value  # type: ignore[return-value]
    if not isinstance(value, str):
        return 0
    cleaned = value.strip().replace("+", "")
    if _MYRIAD_MARKER.search(cleaned):
        num = _parse_float(_MYRIAD_MARKER.sub("", cleaned))
        if num is None:
            return 0
        out = num * MYRIAD
        return out if math.isfinite(out) else 0
    num = _parse_float(cleaned)
    return 0 if num is None else num


def format_number(value: object) -> str:
    """Render a count the way the monthly reports do: 12345 -> '1.2w', 1234 -> '1,234'."""
    if value is None:
        return "-"
    try:
        num = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "-"
    if math.isnan(num) or math.isinf(num):
        return "-"
    if num >= MYRIAD:
        return f"{num / MYRIAD:.1f}w"
    if num.is_integer():
        return f"{int(num):,}"
    return f"{num:,.2f}".rstrip("0").rstrip(".")


def format_period(period: str) -> str:
    """'202511' -> '2025年11月'; anything else is returned unchanged."""
    match = re.fullmatch(r"(\d{4})(\d{2})", period or "")
    if not match:
        return period
    return f"{match.group(1)}年{int(match.group(2))}月"
