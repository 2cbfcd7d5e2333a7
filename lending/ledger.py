"""Lending ledger: the borrow/return state machine.

A book is either Available (no open record references it) or Borrowed
(exactly one open record does). `borrow` and `give_back` move a book
between the two states and update the catalog entry and the ledger entry
together, inside the caller's store transaction.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import List, Optional

from .catalog import Catalog
from .errors import Conflict, NotFound
from .logging_config import get_logger
from .models import BorrowRecord, Document, utcnow

logger = get_logger(__name__)


class Ledger:
    def __init__(self, document: Document):
        self.document = document
        self.catalog = Catalog(document)

    def find(self, record_id: str) -> Optional[BorrowRecord]:
        return next(
            (r for r in self.document.borrow_records if r.id == record_id), None
        )

    def open_record_for(self, book_id: str) -> Optional[BorrowRecord]:
        return next(
            (
                r
                for r in self.document.borrow_records
                if r.book_id == book_id and not r.returned
            ),
            None,
        )

    def borrow(
        self,
        book_id: str,
        borrower_name: str,
        due_date: date,
        acting_user_id: str,
    ) -> BorrowRecord:
        """Lend a book. Raises NotFound for unknown books, Conflict if already out."""
        book = self.catalog.find(book_id)
        if book is None:
            raise NotFound("Book not found")
        if not book.available or self.open_record_for(book_id) is not None:
            raise Conflict("Book is already borrowed")

        record = BorrowRecord(
            book_id=book.id,
            book_title=book.title,
            book_author=book.author,
            category=book.category,
            borrower_name=borrower_name,
            borrowed_by_user_id=acting_user_id,
            due_date=due_date,
        )
        self.document.borrow_records.append(record)
        book.available = False
        logger.info(f"Borrowed book {book.id} as record {record.id}")
        return record

    def give_back(self, record_id: str) -> BorrowRecord:
        """Close a borrow record. Raises NotFound or Conflict if already returned."""
        record = self.find(record_id)
        if record is None:
            raise NotFound("Borrowed book record not found")
        if record.returned:
            raise Conflict("Book is already returned")

        record.returned = True
        record.returned_at = utcnow()

        book = self.catalog.find(record.book_id)
        if book is not None:
            book.available = True
        else:
            logger.warning(
                f"Record {record.id} returned but book {record.book_id} no longer exists"
            )
        logger.info(f"Returned record {record.id}")
        return record


def check_invariants(document: Document) -> List[str]:
    """Return a description of every consistency violation in `document`."""
    problems: List[str] = []

    open_counts = Counter(
        r.book_id for r in document.borrow_records if not r.returned
    )
    for book_id, count in open_counts.items():
        if count > 1:
            problems.append(f"Book {book_id} has {count} open borrow records")

    for book in document.books:
        is_out = open_counts.get(book.id, 0) > 0
        if book.available and is_out:
            problems.append(f"Book {book.id} is marked available but is borrowed")
        elif not book.available and not is_out:
            problems.append(f"Book {book.id} is marked unavailable but has no open record")

    for record in document.borrow_records:
        if record.returned != (record.returned_at is not None):
            problems.append(f"Record {record.id} has inconsistent return state")

    for label, items in (
        ("user", document.users),
        ("book", document.books),
        ("borrow record", document.borrow_records),
    ):
        ids = Counter(item.id for item in items)
        problems.extend(
            f"Duplicate {label} id {item_id}" for item_id, n in ids.items() if n > 1
        )

    return problems
