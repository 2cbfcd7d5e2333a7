"""Lending service: the operation boundary used by the API and CLI.

Every mutating operation is one locked load, mutate, save cycle on the
document store. Input strings are stripped and required fields must be
non-empty.
"""

from __future__ import annotations

import threading
from datetime import date
from typing import List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as ModelValidationError

from . import credentials, sessions
from .catalog import Catalog
from .config import get_config
from .errors import Conflict, Unauthorized, ValidationError
from .ledger import Ledger, check_invariants
from .logging_config import get_logger
from .models import Book, BorrowRecord, User, parse_due_date
from .queries import BorrowFilters, query_borrowed
from .sessions import SessionUser
from .store import DocumentStore

logger = get_logger(__name__)

_date_adapter = TypeAdapter(date)


def _required(value: Optional[str], message: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(message)
    return text


def to_date(value, message: str = "Invalid due date") -> date:
    """Parse a date or ISO date/datetime string into a calendar day."""
    try:
        return _date_adapter.validate_python(parse_due_date(value))
    except ModelValidationError as exc:
        raise ValidationError(message) from exc


class LendingService:
    def __init__(
        self,
        store: DocumentStore,
        secret: str,
        token_ttl_seconds: int = sessions.DEFAULT_TTL_SECONDS,
    ):
        self.store = store
        self.secret = secret
        self.token_ttl_seconds = token_ttl_seconds

    # --- Users and sessions ---

    def register_user(self, username: str, password: str, display_name: str) -> User:
        username = _required(username, "All fields are required")
        display_name = _required(display_name, "All fields are required")
        if not isinstance(password, str) or not password:
            raise ValidationError("All fields are required")

        password_hash = credentials.hash_password(password)
        with self.store.transaction() as document:
            if any(u.username == username for u in document.users):
                raise Conflict("Username already exists")
            user = User(
                username=username,
                password_hash=password_hash,
                display_name=display_name,
            )
            document.users.append(user)
        logger.info(f"Registered user {username}")
        return user

    def authenticate(self, username: str, password: str) -> User:
        username = _required(username, "Username and password are required")
        if not isinstance(password, str) or not password:
            raise ValidationError("Username and password are required")

        document = self.store.snapshot()
        user = next((u for u in document.users if u.username == username), None)
        if user is None or not credentials.verify_password(password, user.password_hash):
            raise Unauthorized("Invalid credentials")
        return user

    def issue_session(self, user: User) -> str:
        return sessions.create_token(user, self.secret, self.token_ttl_seconds)

    def verify_session(self, token: Optional[str]) -> SessionUser:
        if not token:
            raise Unauthorized("Authentication token required")
        session = sessions.verify_token(token, self.secret)
        if session is None:
            raise Unauthorized("Invalid or expired token")
        return session

    # --- Catalog ---

    def add_book(self, title: str, author: str, category: str) -> Book:
        message = "Title, author, and category are required"
        title = _required(title, message)
        author = _required(author, message)
        category = _required(category, message)

        with self.store.transaction() as document:
            book = Catalog(document).add(title, author, category)
        logger.info(f"Added book {book.id} ({title})")
        return book

    def list_books(self, category: Optional[str] = None) -> List[Book]:
        return Catalog(self.store.snapshot()).list(category or None)

    def list_categories(self) -> List[str]:
        return Catalog(self.store.snapshot()).categories()

    # --- Ledger ---

    def borrow(self, book_id: str, borrower_name: str, due_date, user: SessionUser) -> BorrowRecord:
        message = "Book ID, borrower name, and due date are required"
        book_id = _required(book_id, message)
        borrower_name = _required(borrower_name, message)
        if due_date is None or (isinstance(due_date, str) and not due_date.strip()):
            raise ValidationError(message)
        due = to_date(due_date)

        with self.store.transaction() as document:
            return Ledger(document).borrow(book_id, borrower_name, due, user.id)

    def give_back(self, record_id: str) -> BorrowRecord:
        record_id = _required(record_id, "Borrow ID is required")
        with self.store.transaction() as document:
            return Ledger(document).give_back(record_id)

    def query_borrowed(
        self,
        user: SessionUser,
        filters: Optional[BorrowFilters] = None,
        today: Optional[date] = None,
    ) -> List[BorrowRecord]:
        document = self.store.snapshot()
        return query_borrowed(document.borrow_records, user.id, filters, today=today)

    # --- Maintenance ---

    def check(self) -> List[str]:
        return check_invariants(self.store.snapshot())

    def stats(self, today: Optional[date] = None) -> dict:
        today = today or date.today()
        document = self.store.snapshot()
        open_records = [r for r in document.borrow_records if not r.returned]
        return {
            "users": len(document.users),
            "books": len(document.books),
            "available": sum(1 for b in document.books if b.available),
            "borrowed": len(open_records),
            "overdue": sum(1 for r in open_records if r.is_overdue(today)),
        }


_cached_service: Optional[LendingService] = None
_service_lock = threading.Lock()


def get_service() -> LendingService:
    """Return the service singleton built from the cached config."""
    global _cached_service
    if _cached_service is None:
        with _service_lock:
            if _cached_service is None:
                config = get_config()
                _cached_service = LendingService(
                    DocumentStore(config.store_path),
                    secret=config.auth.secret,
                    token_ttl_seconds=config.auth.token_ttl_seconds,
                )
    return _cached_service


def reset_service_cache() -> None:
    global _cached_service
    _cached_service = None
