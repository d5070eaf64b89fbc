# core/utils.py

import json
import math
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def to_iso(dt: datetime) -> str:
    """
    ISO-8601 UTC with millisecond precision and a trailing ``Z``
    (e.g. ``2024-05-01T08:30:00.000Z``). Fixed width, so string order
    matches time order.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# -------------------------------------------------------------
# Normalize blank → None
# -------------------------------------------------------------
def clean(value):
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


# -------------------------------------------------------------
# Convert loose JSON input to a finite float
# -------------------------------------------------------------
def to_float_or_none(value) -> Optional[float]:
    """Convert value to float if possible, otherwise return None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_plates(value: Any) -> List[str]:
    """
    Plates arrive either as a list or as one comma-separated string.
    Blank entries are dropped.
    """
    if isinstance(value, list):
        return [str(p).strip() for p in value if p is not None and str(p).strip()]
    return [p.strip() for p in str(value or "").split(",") if p.strip()]


def parse_json_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = json.loads(value)
        except ValueError:
            # Legacy rows stored a bare string
            return [value]
        return parsed if isinstance(parsed, list) else []
    return []


# -------------------------------------------------------------
# LIKE pattern for a literal substring (escape char: backslash)
# -------------------------------------------------------------
def like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
