"""JSON document store.

The whole dataset lives in one JSON file that is always replaced as a unit.
All load-mutate-save cycles go through `DocumentStore.transaction()`, which
holds a process-wide lock so concurrent requests can not interleave.
"""

from __future__ import annotations

import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError as ModelValidationError

from .errors import StoreFailure
from .logging_config import get_logger
from .models import Document

logger = get_logger(__name__)

# One lock per store file, shared by every DocumentStore pointing at it.
_path_locks: dict[Path, threading.RLock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _path_locks_guard:
        return _path_locks.setdefault(key, threading.RLock())


class DocumentStore:
    """Load/replace access to the single persisted Document."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def load(self) -> Document:
        """Return the stored Document, or an empty one if missing or corrupt."""
        if not self.path.exists():
            return Document()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return Document.model_validate(raw)
        except (OSError, ValueError, ModelValidationError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Unreadable store {self.path}, starting empty: {exc}")
            return Document()

    def save(self, document: Document) -> None:
        """Overwrite the store with `document` via temp file + atomic rename."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(document.to_json(), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error(f"Failed to write store {self.path}: {exc}")
            raise StoreFailure() from exc

    def snapshot(self) -> Document:
        """Load under the lock for read-only use."""
        with self._lock:
            return self.load()

    @contextmanager
    def transaction(self) -> Iterator[Document]:
        """Locked load, yield for mutation, save on clean exit.

        If the block raises, nothing is written and the mutation is lost.
        """
        with self._lock:
            document = self.load()
            yield document
            self.save(document)

    def reset(self) -> None:
        """Replace the stored document with an empty one."""
        with self._lock:
            self.save(Document())
