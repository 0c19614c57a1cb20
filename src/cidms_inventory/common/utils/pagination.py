"""Paging argument helpers shared by listing services."""

from typing import Any

from cidms_inventory.common.exceptions.custom_exceptions import InvalidArgumentError


def normalize_paging(page: Any, page_size: Any, default_size: int, max_size: int) -> tuple[int, int]:
    """Validates page/page_size and caps page_size at ``max_size``."""
    if page_size is None:
        page_size = default_size
    for name, value in (("page", page), ("page_size", page_size)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise InvalidArgumentError(f"{name} must be at least 1, got {value}")
    return page, min(page_size, max_size)
