"""FastAPI router for the lending API: users, books and borrow records."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, Query
from pydantic import BaseModel

from lending.queries import BorrowFilters
from lending.service import get_service, to_date
from lending.sessions import SessionUser

router = APIRouter(tags=["lending"])


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header, else None."""
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def _session(authorization: Optional[str]) -> SessionUser:
    return get_service().verify_session(_bearer_token(authorization))


# --- Users ---


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


@router.post("/register", status_code=201)
def register(body: RegisterRequest):
    user = get_service().register_user(body.username, body.password, body.name)
    return {"message": "User registered successfully", "user": user.public()}


@router.post("/login")
def login(body: LoginRequest):
    service = get_service()
    user = service.authenticate(body.username, body.password)
    return {"token": service.issue_session(user), "user": user.public()}


# --- Books ---


class BookRequest(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None


@router.get("/books")
def list_books(category: Optional[str] = None):
    return [_dump(book) for book in get_service().list_books(category)]


@router.post("/books", status_code=201)
def add_book(body: BookRequest, authorization: Optional[str] = Header(None)):
    _session(authorization)
    book = get_service().add_book(body.title, body.author, body.category)
    return _dump(book)


@router.get("/categories")
def list_categories():
    return get_service().list_categories()


# --- Lending ---


class BorrowRequest(BaseModel):
    bookId: Optional[str] = None
    borrowerName: Optional[str] = None
    dueDate: Optional[str] = None


class ReturnRequest(BaseModel):
    borrowId: Optional[str] = None


@router.post("/borrow", status_code=201)
def borrow(body: BorrowRequest, authorization: Optional[str] = Header(None)):
    user = _session(authorization)
    record = get_service().borrow(body.bookId, body.borrowerName, body.dueDate, user)
    return _dump(record)


@router.post("/return")
def give_back(body: ReturnRequest, authorization: Optional[str] = Header(None)):
    _session(authorization)
    return _dump(get_service().give_back(body.borrowId))


@router.get("/borrowed")
def list_borrowed(
    authorization: Optional[str] = Header(None),
    category: Optional[str] = None,
    borrower_name: Optional[str] = Query(None, alias="borrowerName"),
    due_date: Optional[str] = Query(None, alias="dueDate"),
    overdue: bool = False,
):
    """Borrow records created by the current user, filtered."""
    user = _session(authorization)
    filters = BorrowFilters(
        category=category or None,
        borrower_name=borrower_name or None,
        due_date=to_date(due_date) if due_date else None,
        overdue=overdue,
    )
    records = get_service().query_borrowed(user, filters)
    return [_dump(record) for record in records]


@router.get("/health")
def health():
    return {"status": "ok"}
