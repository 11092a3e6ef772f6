"""File-based JSON document collections.

Each collection is one JSON file holding a list of dicts.  Writes go to a
uniquely named temp file that replaces the original.  Every read-modify-write
holds an advisory lock on ``<name>.json.lock`` so that ``update_one`` and
``insert_if_absent`` stay atomic across processes (the CLI and any number of
API workers share one data directory).  A per-path thread lock serialises
threads of the same process in front of the file lock.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

import filelock

from echoguard.errors import PersistenceError

Document = dict[str, Any]
Filter = dict[str, Any]

LOCK_TIMEOUT = 30.0

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(doc: Document, flt: Filter) -> bool:
    return all(doc.get(k) == v for k, v in flt.items())


class JsonCollection:
    """A list of documents persisted in ``<base_dir>/<name>.json``."""

    def __init__(self, base_dir: str | Path, name: str, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self._base = Path(base_dir)
        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create data directory {self._base}: {e}") from e
        self.path = self._base / f"{name}.json"
        self.name = name
        self._lock = _lock_for(self.path)
        self._file_lock = filelock.FileLock(str(self._base / f"{name}.json.lock"), timeout=lock_timeout)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            try:
                self._file_lock.acquire()
            except filelock.Timeout as e:
                raise PersistenceError(f"Timed out waiting for the lock on collection '{self.name}'") from e
            try:
                yield
            finally:
                self._file_lock.release()

    def _read(self) -> list[Document]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise PersistenceError(f"Cannot read collection '{self.name}': {e}") from e
        if not isinstance(data, list):
            raise PersistenceError(f"Collection '{self.name}' is corrupt: expected a list")
        return data

    def _write(self, docs: list[Document]) -> None:
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self._base, prefix=f".{self.name}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                json.dump(docs, tmp, indent=2, default=str)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Cannot write collection '{self.name}': {e}") from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(self, flt: Optional[Filter] = None) -> list[Document]:
        with self._locked():
            docs = self._read()
        if not flt:
            return docs
        return [d for d in docs if _matches(d, flt)]

    def find_one(self, flt: Filter) -> Optional[Document]:
        for d in self.find(flt):
            return d
        return None

    def count(self, flt: Optional[Filter] = None) -> int:
        return len(self.find(flt))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, doc: Document) -> Document:
        """Append a document, assigning ``id`` when missing."""
        doc = dict(doc)
        doc.setdefault("id", new_id())
        with self._locked():
            docs = self._read()
            docs.append(doc)
            self._write(docs)
        return doc

    def insert_if_absent(self, flt: Filter, doc: Document) -> tuple[Document, bool]:
        """Insert ``doc`` unless a document matching ``flt`` exists.

        Returns ``(document, created)``.  Check and insert happen under one lock.
        """
        with self._locked():
            docs = self._read()
            for d in docs:
                if _matches(d, flt):
                    return d, False
            doc = dict(doc)
            doc.setdefault("id", new_id())
            docs.append(doc)
            self._write(docs)
        return doc, True

    def update_one(self, flt: Filter, mutate: Callable[[Document], None]) -> Optional[Document]:
        """Apply ``mutate`` in place to the first match and persist it.

        Returns the updated document, or None when nothing matched.
        """
        with self._locked():
            docs = self._read()
            for d in docs:
                if _matches(d, flt):
                    mutate(d)
                    self._write(docs)
                    return dict(d)
        return None

    def delete_one(self, flt: Filter) -> bool:
        with self._locked():
            docs = self._read()
            for i, d in enumerate(docs):
                if _matches(d, flt):
                    del docs[i]
                    self._write(docs)
                    return True
        return False

    def delete_many(self, flt: Filter) -> int:
        with self._locked():
            docs = self._read()
            kept = [d for d in docs if not _matches(d, flt)]
            removed = len(docs) - len(kept)
            if removed:
                self._write(kept)
        return removed
