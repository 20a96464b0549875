"""
Leaf helpers for request normalization (emails, dates, ids, numbers).
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Mapping

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_email(email: Any) -> str:
    if email is None:
        return ""
    return str(email).strip().lower()


def optional_email(email: Any) -> str | None:
    value = normalize_email(email)
    return value or None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return to_iso8601(utc_now())


def to_iso8601(value: datetime) -> str:
    """
    UTC ISO-8601 with millisecond precision and a trailing "Z".
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse the date formats clients send (ISO date, ISO datetime, epoch ms).

    Naive values are taken as UTC. Returns None when unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    raw = str(value).strip()
    if not raw:
        return None
    if raw.isdigit():
        return parse_datetime(int(raw))
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def normalize_timestamp(value: Any) -> str:
    """
    ISO-8601 when parseable, otherwise the raw value as text.
    """
    parsed = parse_datetime(value)
    return to_iso8601(parsed) if parsed is not None else str(value)


def normalize_date_only(value: Any) -> Any:
    """
    "YYYY-MM-DD" -> "YYYY-MM-DDT00:00:00Z"; other values pass through.
    """
    if isinstance(value, str) and _DATE_ONLY.match(value.strip()):
        return value.strip() + "T00:00:00Z"
    return value


def date_part(value: Any) -> str | None:
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).date().isoformat()


def is_past_or_now(value: Any, *, now: datetime | None = None) -> bool:
    parsed = parse_datetime(value)
    if parsed is None:
        return False
    return parsed <= (now or utc_now())


def parse_leading_int(raw: Any) -> int | None:
    """
    parseInt-style: optional sign, then leading digits ("12abc" -> 12).
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str("" if raw is None else raw).strip()
    sign = text[:1] if text[:1] in ("+", "-") else ""
    digits = text[len(sign):]
    end = 0
    while end < len(digits) and digits[end].isdigit():
        end += 1
    if end == 0:
        return None
    return int(sign + digits[:end])


def parse_int_id(raw: Any) -> int | None:
    """
    Path ids sometimes arrive as "12:extra"; keep the part before ":".

    Returns None for anything that is not a positive integer.
    """
    value = parse_leading_int(str("" if raw is None else raw).split(":", 1)[0])
    return value if value is not None and value > 0 else None


def parse_number(value: Any) -> float | int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip().replace(",", "."))
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


def sparse_update(values: Mapping[str, Any]) -> dict[str, Any]:
    """
    Keep only the fields the caller actually provided.
    """
    return {k: v for k, v in values.items() if v is not None}
