from typing import Tuple


def normalize_paging(page: int, page_size: int, max_page_size: int = 100) -> Tuple[int, int]:
    p = page if page and page > 0 else 1
    ps = page_size if page_size and page_size > 0 else 20
    ps = min(ps, max_page_size)
    return p, ps


def page_window(page: int, page_size: int, max_page_size: int = 100) -> Tuple[int, int, int]:
    """Return (page, page_size, offset) after normalization."""
    p, ps = normalize_paging(page, page_size, max_page_size)
    return p, ps, (p - 1) * ps
