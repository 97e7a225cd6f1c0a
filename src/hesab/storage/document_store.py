# src/hesab/storage/document_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import threading
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.ports import Snapshot, SnapshotCallback, Unsubscribe

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Watch:
    collection: str
    filters: dict[str, Any]
    callback: SnapshotCallback
    active: bool = True


class DocumentStore:
    """
    SQLite document store with live queries.

    Documents live in named collections ("users/<uid>/dailyTasks", ...) as JSON
    objects. subscribe() behaves like a snapshot listener:
    - the current result set is delivered immediately,
    - it is delivered again after every write to the same collection,
    - the returned callable stops delivery.

    Thread-safety:
    - each method opens its own SQLite connection
    - the watch list is guarded by a lock; callbacks run outside of it
    """

    def __init__(self, db_path: str | Path = "hesab.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._watches: list[_Watch] = []
        self._watch_lock = threading.Lock()
        self._ensure_schema()
        try:
            total = self.count_documents()
        except Exception:
            total = -1
        logger.info("DocumentStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Drop live queries (connections are short-lived and need no closing)."""
        with self._watch_lock:
            for w in self._watches:
                w.active = False
            self._watches.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _data_to_str(data: dict[str, Any]) -> str:
        return json.dumps(data, ensure_ascii=False, sort_keys=True)

    @staticmethod
    def _str_to_data(s: str | None) -> dict[str, Any]:
        if not s:
            return {}
        try:
            val = json.loads(s)
            return val if isinstance(val, dict) else {}
        except Exception:
            return {}

    @staticmethod
    def _matches(data: dict[str, Any], filters: dict[str, Any]) -> bool:
        return all(data.get(k) == v for k, v in filters.items())

    # ---- public API ----

    def count_documents(self, collection: str | None = None) -> int:
        conn = self._get_conn()
        try:
            if collection is None:
                (n,) = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
            else:
                (n,) = conn.execute(
                    "SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,)
                ).fetchone()
            return int(n)
        finally:
            conn.close()

    def add_document(self, collection: str, data: dict[str, Any]) -> str:
        if not collection:
            raise ValueError("collection is required")
        doc_id = uuid.uuid4().hex
        now = time.time()
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO documents(collection, id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (collection, doc_id, self._data_to_str(data), now, now),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Document added collection=%s id=%s", collection, doc_id)
        self._notify(collection)
        return doc_id

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            return self._str_to_data(row["data"]) if row else None
        finally:
            conn.close()

    def update_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge `fields` into an existing document. Raises KeyError if it does not exist."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            if row is None:
                raise KeyError(f"{collection}/{doc_id}")
            data = self._str_to_data(row["data"])
            data.update(fields)
            conn.execute(
                "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (self._data_to_str(data), time.time(), collection, doc_id),
            )
            conn.commit()
        finally:
            conn.close()
        self._notify(collection)

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Raises KeyError if the document does not exist."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            conn.commit()
            if cur.rowcount != 1:
                raise KeyError(f"{collection}/{doc_id}")
        finally:
            conn.close()
        self._notify(collection)

    def query(self, collection: str, filters: dict[str, Any] | None = None) -> Snapshot:
        """Documents of a collection matching equality filters, oldest first."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? ORDER BY created_at ASC, id ASC",
                (collection,),
            ).fetchall()
        finally:
            conn.close()

        flt = filters or {}
        out: Snapshot = []
        for r in rows:
            data = self._str_to_data(r["data"])
            if self._matches(data, flt):
                out.append((str(r["id"]), data))
        return out

    def subscribe(
        self,
        collection: str,
        filters: dict[str, Any] | None,
        on_snapshot: SnapshotCallback,
    ) -> Unsubscribe:
        watch = _Watch(collection=collection, filters=dict(filters or {}), callback=on_snapshot)
        with self._watch_lock:
            self._watches.append(watch)
        logger.debug("Live query opened collection=%s filters=%s", collection, watch.filters)

        self._deliver(watch)

        def unsubscribe() -> None:
            with self._watch_lock:
                watch.active = False
                if watch in self._watches:
                    self._watches.remove(watch)
            logger.debug("Live query closed collection=%s filters=%s", collection, watch.filters)

        return unsubscribe

    def active_watch_count(self) -> int:
        with self._watch_lock:
            return len(self._watches)

    # ---- live query delivery ----

    def _deliver(self, watch: _Watch) -> None:
        if not watch.active:
            return
        try:
            snapshot = self.query(watch.collection, watch.filters)
            watch.callback(snapshot)
        except Exception:
            logger.exception("Snapshot delivery failed collection=%s", watch.collection)

    def _notify(self, collection: str) -> None:
        with self._watch_lock:
            targets = [w for w in self._watches if w.collection == collection]
        for w in targets:
            self._deliver(w)
