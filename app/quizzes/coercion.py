from __future__ import annotations

import math
from typing import Any


def parse_number(raw: Any, *, default: float = 0.0) -> float:
    if isinstance(raw, bool):
        return default
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        try:
            value = float(str(raw).strip())
        except (TypeError, ValueError):
            return default
    if math.isnan(value) or math.isinf(value):
        return default
    return value


def coerce_non_negative(raw: Any, *, default: float = 0.0) -> float:
    """Numeric form fields: unparsable input becomes `default`, negatives become 0."""
    return max(0.0, parse_number(raw, default=default))


def coerce_minutes(raw: Any) -> int:
    """Timer field, truncated like an integer input ("12.7" -> 12)."""
    return int(coerce_non_negative(raw))


def coerce_flag(raw: Any, *, default: bool = False) -> bool:
    if raw is None:
        return default
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    return bool(raw)
