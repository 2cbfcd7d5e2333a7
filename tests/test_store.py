"""Tests for the JSON document store."""

import json
from datetime import date

import pytest

from lending.errors import NotFound, StoreFailure
from lending.models import Book, BorrowRecord, Document, User
from lending.store import DocumentStore


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "library.json")


def _sample_document() -> Document:
    book = Book(id="b1", title="Dune", author="Frank Herbert", category="Sci-Fi", available=False)
    return Document(
        users=[User(id="u1", username="alice", password_hash="x", display_name="Alice")],
        books=[book],
        borrow_records=[
            BorrowRecord(
                id="r1",
                book_id="b1",
                book_title="Dune",
                book_author="Frank Herbert",
                category="Sci-Fi",
                borrower_name="Alice",
                borrowed_by_user_id="u1",
                due_date=date(2024, 1, 10),
            )
        ],
    )


def test_load_missing_file_returns_empty_document(store):
    document = store.load()
    assert document.users == []
    assert document.books == []
    assert document.borrow_records == []


def test_load_corrupt_file_returns_empty_document(store):
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() == Document()


def test_load_wrong_shape_returns_empty_document(store):
    store.path.write_text(json.dumps({"books": [{"title": 3}]}), encoding="utf-8")
    assert store.load() == Document()


def test_load_fills_missing_collections(store):
    store.path.write_text(
        json.dumps({"books": [{"id": "b1", "title": "T", "author": "A", "category": "C", "available": True}]}),
        encoding="utf-8",
    )
    document = store.load()
    assert [b.id for b in document.books] == ["b1"]
    assert document.users == []
    assert document.borrow_records == []


def test_save_writes_camel_case_json(store):
    store.save(_sample_document())
    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert set(raw) == {"users", "books", "borrowRecords"}
    record = raw["borrowRecords"][0]
    assert record["bookId"] == "b1"
    assert record["borrowedByUserId"] == "u1"
    assert record["dueDate"] == "2024-01-10"
    assert record["returned"] is False
    assert record["returnedAt"] is None
    assert raw["users"][0]["passwordHash"] == "x"
    assert not store.path.with_name("library.json.tmp").exists()


def test_save_load_round_trip_is_noop(store):
    original = _sample_document()
    store.save(original)
    first = store.path.read_text(encoding="utf-8")
    store.save(store.load())
    assert store.path.read_text(encoding="utf-8") == first
    assert store.load() == original


def test_save_failure_raises_store_failure(tmp_path):
    target = tmp_path / "library.json"
    target.mkdir()
    with pytest.raises(StoreFailure):
        DocumentStore(target).save(Document())


def test_transaction_saves_on_success(store):
    with store.transaction() as document:
        document.books.append(Book(title="T", author="A", category="C"))
    assert len(store.load().books) == 1


def test_transaction_discards_mutation_on_error(store):
    store.save(_sample_document())
    before = store.path.read_text(encoding="utf-8")

    with pytest.raises(NotFound):
        with store.transaction() as document:
            document.books.clear()
            raise NotFound()

    assert store.path.read_text(encoding="utf-8") == before


def test_reset_empties_store(store):
    store.save(_sample_document())
    store.reset()
    assert store.load() == Document()


def test_stores_on_same_file_share_one_lock(tmp_path):
    first = DocumentStore(tmp_path / "library.json")
    second = DocumentStore(tmp_path / "sub" / ".." / "library.json")
    other = DocumentStore(tmp_path / "other.json")

    assert first._lock is second._lock
    assert first._lock is not other._lock
