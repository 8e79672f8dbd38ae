"""
SQLite-backed document store with live snapshot listeners.
"""

from typing import Any, Dict, List, Optional, Tuple
import itertools
import json
import os
import sqlite3
import threading
import time
import uuid

from infrastructure.store.document_store import (
    CollectionSnapshot,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    Snapshot,
    SnapshotCallback,
    StoreSubscriptionError,
    StoreWriteError,
    Subscription,
    is_document_path,
    normalize_collection_path,
    split_document_path,
)
from utils.logging_config import get_logger


class SQLiteDocumentStore(DocumentStore):
    """
    Document store keeping JSON documents in a single SQLite table.

    Every mutation notifies the listeners of the touched document and of its
    parent collection with a fresh full snapshot. Notification happens while
    the store lock is held, so listeners always observe snapshots in write
    order. Listeners must not block on locks held by writers on other threads.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.logger = get_logger(__name__)
        self.db_path = db_path
        self._lock = threading.RLock()
        self._listeners: Dict[str, Dict[int, Tuple[SnapshotCallback, Optional[ErrorCallback]]]] = {}
        self._listener_ids = itertools.count(1)

        if db_path != ":memory:":
            directory = os.path.dirname(db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_database()

    def _init_database(self):
        """Create the documents table"""
        try:
            with self._lock:
                self._conn.execute('''
                    CREATE TABLE IF NOT EXISTS documents (
                        collection TEXT NOT NULL,
                        doc_id TEXT NOT NULL,
                        data TEXT NOT NULL,
                        updated_at REAL NOT NULL,
                        PRIMARY KEY (collection, doc_id)
                    )
                ''')
                self._conn.commit()
            self.logger.info(f"Document store initialized at {self.db_path}")
        except sqlite3.Error as e:
            self.logger.error(f"Error initializing document store: {e}")
            raise

    # Reads

    def _read_document(self, collection: str, doc_id: str) -> DocumentSnapshot:
        row = self._conn.execute(
            "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id)
        ).fetchone()
        if row is None:
            return DocumentSnapshot(id=doc_id)
        return DocumentSnapshot(id=doc_id, data=json.loads(row[0]))

    def _read_collection(self, collection: str) -> CollectionSnapshot:
        rows = self._conn.execute(
            "SELECT doc_id, data FROM documents WHERE collection = ?",
            (collection,)
        ).fetchall()
        docs = [DocumentSnapshot(id=doc_id, data=json.loads(data)) for doc_id, data in rows]
        return CollectionSnapshot(path=collection, docs=docs)

    def _read(self, path: str) -> Snapshot:
        if is_document_path(path):
            collection, doc_id = split_document_path(path)
            return self._read_document(collection, doc_id)
        return self._read_collection(normalize_collection_path(path))

    def get(self, path: str) -> Snapshot:
        with self._lock:
            return self._read(path)

    # Writes

    def _write(self, collection: str, doc_id: str, data: Dict[str, Any]):
        try:
            payload = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreWriteError(f"Document {collection}/{doc_id} is not JSON serializable: {e}") from e

        try:
            self._conn.execute('''
                INSERT INTO documents (collection, doc_id, data, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (collection, doc_id)
                DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
            ''', (collection, doc_id, payload, time.time()))
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreWriteError(f"Failed to write {collection}/{doc_id}: {e}") from e

    def create(self, collection_path: str, data: Dict[str, Any]) -> str:
        collection = normalize_collection_path(collection_path)
        doc_id = uuid.uuid4().hex[:20]
        with self._lock:
            self._write(collection, doc_id, dict(data))
            self.logger.debug(f"Created document {collection}/{doc_id}")
            self._notify(collection, doc_id)
        return doc_id

    def set(self, document_path: str, data: Dict[str, Any], merge: bool = False) -> None:
        collection, doc_id = split_document_path(document_path)
        with self._lock:
            document = dict(data)
            if merge:
                current = self._read_document(collection, doc_id)
                if current.exists:
                    document = {**current.data, **data}
            self._write(collection, doc_id, document)
            self._notify(collection, doc_id)

    def update(self, document_path: str, data: Dict[str, Any]) -> None:
        collection, doc_id = split_document_path(document_path)
        with self._lock:
            current = self._read_document(collection, doc_id)
            if not current.exists:
                raise DocumentNotFoundError(f"No document to update at {collection}/{doc_id}")
            self._write(collection, doc_id, {**current.data, **data})
            self._notify(collection, doc_id)

    def delete(self, document_path: str) -> None:
        collection, doc_id = split_document_path(document_path)
        with self._lock:
            try:
                self._conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id)
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreWriteError(f"Failed to delete {collection}/{doc_id}: {e}") from e
            self.logger.debug(f"Deleted document {collection}/{doc_id}")
            self._notify(collection, doc_id)

    # Subscriptions

    def subscribe(self, path: str, on_snapshot: SnapshotCallback,
                  on_error: Optional[ErrorCallback] = None) -> Subscription:
        key = path.strip("/")
        if not is_document_path(key):
            key = normalize_collection_path(key)

        with self._lock:
            listener_id = next(self._listener_ids)
            self._listeners.setdefault(key, {})[listener_id] = (on_snapshot, on_error)
            subscription = Subscription(key, lambda: self._remove_listener(key, listener_id))
            self._deliver(key, [listener_id])
        return subscription

    def _remove_listener(self, key: str, listener_id: int):
        with self._lock:
            listeners = self._listeners.get(key)
            if listeners is None:
                return
            listeners.pop(listener_id, None)
            if not listeners:
                del self._listeners[key]

    def _notify(self, collection: str, doc_id: str):
        for key in (f"{collection}/{doc_id}", collection):
            if key in self._listeners:
                self._deliver(key, list(self._listeners[key]))

    def _deliver(self, key: str, listener_ids: List[int]):
        try:
            snapshot = self._read(key)
        except (sqlite3.Error, ValueError) as e:
            snapshot = None
            read_error = StoreSubscriptionError(f"Failed to read snapshot for {key}: {e}")

        for listener_id in listener_ids:
            # A callback earlier in this loop may have cancelled a later listener
            entry = self._listeners.get(key, {}).get(listener_id)
            if entry is None:
                continue
            on_snapshot, on_error = entry
            if snapshot is None:
                self._report(key, read_error, on_error)
                continue
            try:
                on_snapshot(snapshot)
            except Exception as e:
                self._report(key, e, on_error)

    def _report(self, key: str, error: Exception, on_error: Optional[ErrorCallback]):
        if on_error is None:
            self.logger.error(f"Unhandled subscription error on {key}: {error}")
            return
        on_error(error)

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()
            self._conn.close()
