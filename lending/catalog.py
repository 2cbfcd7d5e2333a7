"""Book catalog over the books collection of a Document."""

from __future__ import annotations

from typing import List, Optional

from .models import Book, Document


class Catalog:
    """Adds and looks up books. Availability is only changed by the Ledger."""

    def __init__(self, document: Document):
        self.document = document

    def add(self, title: str, author: str, category: str) -> Book:
        book = Book(title=title, author=author, category=category)
        self.document.books.append(book)
        return book

    def find(self, book_id: str) -> Optional[Book]:
        return next((b for b in self.document.books if b.id == book_id), None)

    def list(self, category: Optional[str] = None) -> List[Book]:
        if category is None:
            return list(self.document.books)
        return [b for b in self.document.books if b.category == category]

    def categories(self) -> List[str]:
        """Distinct categories in order of first appearance."""
        return list(dict.fromkeys(b.category for b in self.document.books))
