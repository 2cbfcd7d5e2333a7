"""Pydantic models for the lending document.

Attribute names are snake_case; the persisted JSON and the API use the
camelCase aliases.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_due_date(value):
    """Accept a date, a datetime or an ISO string; keep only the calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            try:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            except ValueError:
                return text
        return text
    return value


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(DocumentModel):
    id: str = Field(default_factory=new_id)
    username: str
    password_hash: str
    display_name: str

    def public(self) -> dict:
        """Summary safe to return to clients (no password hash)."""
        return {"id": self.id, "username": self.username, "name": self.display_name}


class Book(DocumentModel):
    id: str = Field(default_factory=new_id)
    title: str
    author: str
    category: str
    available: bool = True


class BorrowRecord(DocumentModel):
    id: str = Field(default_factory=new_id)
    book_id: str
    # Snapshot of the book at borrow time
    book_title: str
    book_author: str
    category: str
    borrower_name: str
    borrowed_by_user_id: str
    borrowed_at: datetime = Field(default_factory=utcnow)
    due_date: date
    returned: bool = False
    returned_at: Optional[datetime] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return parse_due_date(value)

    def is_overdue(self, today: date) -> bool:
        """True when still out and the due date is strictly before today."""
        return not self.returned and self.due_date < today


class Document(DocumentModel):
    users: List[User] = Field(default_factory=list)
    books: List[Book] = Field(default_factory=list)
    borrow_records: List[BorrowRecord] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
