"""
Document store abstractions shared by every store backend.

Paths follow the document-store convention: an odd number of segments names a
collection ("artifacts/app/users/u1/chats"), an even number names a document
("artifacts/app/users/u1/chats/abc").
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import threading


class StoreError(Exception):
    """Base class for document store failures"""
    pass


class StoreWriteError(StoreError):
    """A create/set/update/delete was rejected by the store"""
    pass


class DocumentNotFoundError(StoreWriteError):
    """An update targeted a document that does not exist"""
    pass


class StoreSubscriptionError(StoreError):
    """A live subscription could not produce a snapshot"""
    pass


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time view of a single document"""
    id: str
    data: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class CollectionSnapshot:
    """Point-in-time view of every document in a collection"""
    path: str
    docs: List[DocumentSnapshot] = field(default_factory=list)


Snapshot = Union[DocumentSnapshot, CollectionSnapshot]
SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[Exception], None]


def split_path(path: str) -> List[str]:
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not segments:
        raise ValueError("Store path must not be empty")
    return segments


def is_document_path(path: str) -> bool:
    return len(split_path(path)) % 2 == 0


def split_document_path(path: str) -> Tuple[str, str]:
    """Split a document path into (collection path, document id)"""
    segments = split_path(path)
    if len(segments) % 2 != 0:
        raise ValueError(f"Not a document path: {path}")
    return "/".join(segments[:-1]), segments[-1]


def normalize_collection_path(path: str) -> str:
    segments = split_path(path)
    if len(segments) % 2 == 0:
        raise ValueError(f"Not a collection path: {path}")
    return "/".join(segments)


class Subscription:
    """
    Cancellable handle for a live subscription.

    unsubscribe() is idempotent; once it returns no further snapshot is
    delivered through this handle.
    """

    def __init__(self, path: str, cancel: Callable[[], None]):
        self.path = path
        self._cancel = cancel
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self):
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._cancel()


class DocumentStore(ABC):
    """Create/read/update/delete and subscribe operations on JSON documents"""

    @abstractmethod
    def subscribe(self, path: str, on_snapshot: SnapshotCallback,
                  on_error: Optional[ErrorCallback] = None) -> Subscription:
        """Deliver the current snapshot of `path` now and after every change"""

    @abstractmethod
    def get(self, path: str) -> Snapshot:
        """Read a document or collection once"""

    @abstractmethod
    def create(self, collection_path: str, data: Dict[str, Any]) -> str:
        """Add a document with a store-assigned id and return the id"""

    @abstractmethod
    def set(self, document_path: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Write a document, replacing it or merging top-level fields"""

    @abstractmethod
    def update(self, document_path: str, data: Dict[str, Any]) -> None:
        """Merge top-level fields into an existing document"""

    @abstractmethod
    def delete(self, document_path: str) -> None:
        """Remove a document; deleting a missing document is not an error"""

    def close(self) -> None:
        pass
