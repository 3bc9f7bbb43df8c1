"""
Normalization of raw search parameters into a Filter
"""
from typing import Any, Mapping, Optional

from .domain.models import Filter
from .exceptions import InvalidFilterError

# Query parameter names accepted by the HTTP API
MIN_PARAM = "minUsersCount"
MAX_PARAM = "maxUsersCount"
TEXT_PARAM = "q"
CATEGORY_PARAM = "category"


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_count(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidFilterError(f"{name} must be a whole number")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = int(text)
        except ValueError:
            raise InvalidFilterError(f"{name} must be a whole number, got '{text}'")
    if number < 0:
        raise InvalidFilterError(f"{name} cannot be negative")
    return number


def normalize_filter(raw: Optional[Mapping[str, Any]]) -> Filter:
    """
    Build a validated Filter from raw query parameters

    Strings are trimmed and empty values dropped; counts are coerced to int.

    Raises:
        InvalidFilterError: non-numeric or negative counts, or min > max
    """
    raw = raw or {}
    search_filter = Filter(
        min_popularity=_coerce_count(MIN_PARAM, raw.get(MIN_PARAM)),
        max_popularity=_coerce_count(MAX_PARAM, raw.get(MAX_PARAM)),
        text_query=_clean_text(raw.get(TEXT_PARAM)),
        category=_clean_text(raw.get(CATEGORY_PARAM)),
    )
    return search_filter.validate()
