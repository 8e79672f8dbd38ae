"""
Document store infrastructure - JSON documents with live snapshot subscriptions.
"""

from .document_store import (
    CollectionSnapshot,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    StoreError,
    StoreSubscriptionError,
    StoreWriteError,
    Subscription,
)
from .sqlite_store import SQLiteDocumentStore

__all__ = [
    'CollectionSnapshot',
    'DocumentNotFoundError',
    'DocumentSnapshot',
    'DocumentStore',
    'StoreError',
    'StoreSubscriptionError',
    'StoreWriteError',
    'Subscription',
    'SQLiteDocumentStore'
]
