"""
Storage Services Package

Provides the abstract record storage interface and its implementations.
Supabase is the production backend; the in-memory store backs tests and
the offline demo.
"""

from notanusa.services.storage.interface import (
    AuthorizationError,
    ConnectionError,
    ConstraintViolationError,
    DuplicateError,
    FilterOperator,
    NotFoundError,
    RecordFilter,
    RecordOrdering,
    RecordStorageInterface,
    StorageError,
)
from notanusa.services.storage.memory import InMemoryRecordStorage
from notanusa.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseRecordStorage,
)

__all__ = [
    # Interface
    "FilterOperator",
    "RecordFilter",
    "RecordOrdering",
    "RecordStorageInterface",
    # Exceptions
    "AuthorizationError",
    "ConnectionError",
    "ConstraintViolationError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryRecordStorage",
    "SupabaseClient",
    "SupabaseRecordStorage",
]
