"""Page/page-size normalisation shared by the repositories and managers."""

from __future__ import annotations

from typing import Optional, Tuple

from formdesk.config import get_config


def clamp_page(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """Return (page, page_size) with page >= 1 and 1 <= page_size <= max_page_size.

    A missing page size falls back to the configured default.
    """
    cfg = get_config().pagination
    p = page if page and page > 0 else 1
    if page_size is None:
        size = cfg.default_page_size
    else:
        size = min(max(page_size, 1), cfg.max_page_size)
    return p, size


def offset_for(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def total_pages(total_count: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return (total_count + page_size - 1) // page_size


__all__ = ["clamp_page", "offset_for", "total_pages"]
