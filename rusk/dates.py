"""Date normalization for user-supplied dates.

Accepted inputs are ``DD-MM-YYYY``, ``DD/MM/YYYY``, ``DD-MM-YY`` and
``DD/MM/YY``; two-digit years map to 2000..2099. The canonical form is
``DD-MM-YYYY``.
"""

import re
from datetime import date, datetime
from typing import Optional

CANONICAL_FORMAT = "%d-%m-%Y"


def _expand_year(raw: str) -> str:
    value = raw.replace("/", "-")
    parts = value.split("-")
    if len(parts) == 3 and len(parts[2]) in (1, 2) and parts[2].isdigit():
        year = int(parts[2])
        if 0 <= year <= 99:
            parts[2] = str(2000 + year)
            value = "-".join(parts)
    return value


def normalize_date(raw: str) -> Optional[str]:
    """Return the canonical ``DD-MM-YYYY`` form of `raw`, or None if invalid."""
    parsed = parse_date(raw)
    if parsed is None:
        return None
    return format_canonical(parsed)


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Parse a user date string; None means "not a valid date"."""
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None

    candidate = _expand_year(text)
    if not re.fullmatch(r"\d{1,2}-\d{1,2}-\d{4}", candidate):
        return None
    try:
        return datetime.strptime(candidate, CANONICAL_FORMAT).date()
    except ValueError:
        return None


def is_valid_date(raw: str) -> bool:
    return parse_date(raw) is not None


def format_canonical(value: date) -> str:
    return f"{value.day:02d}-{value.month:02d}-{value.year:04d}"


def format_date(value: Optional[date]) -> str:
    """Display form used in prompts; absent dates read as "empty"."""
    if value is None:
        return "empty"
    return format_canonical(value)
