"""Pagination helpers."""

import math


def page_count(total: int, limit: int) -> int:
    """
    Number of pages needed to show ``total`` items ``limit`` at a time.

    Examples:
        page_count(0, 10) -> 0
        page_count(15, 10) -> 2
    """
    return math.ceil(total / limit) if total > 0 else 0


def page_offset(page: int, limit: int) -> int:
    """Rows to skip for a 1-indexed page."""
    return (page - 1) * limit
