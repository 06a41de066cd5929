"""Free-text search normalization helpers."""

from typing import Optional


def is_empty(value: Optional[str]) -> bool:
    return value is None or value == ""


def is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def normalize_search(search: Optional[str]) -> Optional[str]:
    """Trim *search*; blank or whitespace-only input becomes ``None``."""
    return None if is_blank(search) else search.strip()


__all__ = ["is_empty", "is_blank", "normalize_search"]
