from typing import Any, List, Sequence, Tuple, TypeVar

from pkgmirror.domain.models import PackageRecord

T = TypeVar("T")


def strip_nulls(value: Any) -> Any:
    """
    Recursively remove keys with value None from dictionaries.

    Lists are preserved, but their elements are also cleaned.
    """
    if isinstance(value, dict):
        return {k: strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_nulls(v) for v in value]
    return value


def matches_query(record: PackageRecord, normalized_query: str) -> bool:
    """
    Case-insensitive substring match against the display name or identifier.

    ``normalized_query`` must already be lower-cased.
    """
    return normalized_query in record.name.lower() or normalized_query in record.id.lower()


def rank_key(record: PackageRecord, normalized_query: str) -> Tuple[int, int]:
    # Exact name matches first, then shorter names. Used with a stable sort.
    exact = 0 if record.name.lower() == normalized_query else 1
    return exact, len(record.name)


def paginate(items: Sequence[T], page: int, limit: int) -> List[T]:
    """
    Return the 1-indexed ``page`` of ``items``.

    Pages past the end, and non-positive page or limit values, give an empty
    list rather than an error.
    """
    if page < 1 or limit < 1:
        return []
    start = (page - 1) * limit
    return list(items[start:start + limit])
