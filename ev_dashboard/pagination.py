from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd


PAGE_SIZE = 10


@dataclass(frozen=True)
class Page:
    rows: pd.DataFrame
    page: int
    page_size: int
    total_pages: int
    total_records: int

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def total_pages(total_records: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages for ``total_records``; an empty set still has one (empty) page."""
    if total_records <= 0:
        return 1
    return max(1, math.ceil(total_records / page_size))


def clamp_page(page: object, pages: int) -> int:
    try:
        page = int(page)  # type: ignore[arg-type]
    except Exception:
        page = 1
    return max(1, min(page, max(1, pages)))


def paginate(df: pd.DataFrame, page: object = 1, page_size: int = PAGE_SIZE) -> Page:
    total = int(len(df))
    pages = total_pages(total, page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    return Page(
        rows=df.iloc[start : start + page_size],
        page=current,
        page_size=page_size,
        total_pages=pages,
        total_records=total,
    )
