"""Input normalization helpers. Canonical stored phone form is digits only (e.g. 01012345678)."""

import re
from typing import Optional

_NON_DIGIT = re.compile(r"[^0-9]")


def normalize_phone(value: Optional[str]) -> str:
    return _NON_DIGIT.sub("", str(value or ""))


def is_valid_phone(value: Optional[str]) -> bool:
    return 10 <= len(normalize_phone(value)) <= 11


def clean_str_list(values, limit: int) -> list:
    """Trim entries, drop empty ones, keep order, cap at `limit`."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    cleaned = [str(getattr(v, "value", v)).strip() for v in values]
    return [v for v in cleaned if v][:limit]
