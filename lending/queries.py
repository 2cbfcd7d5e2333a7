"""Filtering of borrow records for the "my borrowed books" view."""

from __future__ import annotations

import dataclasses
from datetime import date
from typing import Iterable, List, Optional

from .models import BorrowRecord


@dataclasses.dataclass
class BorrowFilters:
    """Optional filters; each one left as None is ignored."""

    category: Optional[str] = None
    borrower_name: Optional[str] = None
    due_date: Optional[date] = None
    overdue: bool = False


def query_borrowed(
    records: Iterable[BorrowRecord],
    owner_user_id: str,
    filters: Optional[BorrowFilters] = None,
    today: Optional[date] = None,
) -> List[BorrowRecord]:
    """Records borrowed by `owner_user_id` matching every given filter.

    Keeps ledger order. `today` defaults to the local calendar day.
    """
    filters = filters or BorrowFilters()
    results = [r for r in records if r.borrowed_by_user_id == owner_user_id]

    if filters.category:
        results = [r for r in results if r.category == filters.category]

    if filters.borrower_name:
        term = filters.borrower_name.lower()
        results = [r for r in results if term in r.borrower_name.lower()]

    if filters.due_date is not None:
        results = [r for r in results if r.due_date == filters.due_date]

    if filters.overdue:
        today = today or date.today()
        results = [r for r in results if r.is_overdue(today)]

    return results
