"""Services package."""

from notanusa.services.auth import (
    AuthenticatedUser,
    AuthenticationError,
    IdentityProviderInterface,
    InMemoryIdentityProvider,
    SignUpResult,
    SupabaseIdentityProvider,
)
from notanusa.services.storage import (
    AuthorizationError,
    ConnectionError,
    ConstraintViolationError,
    DuplicateError,
    InMemoryRecordStorage,
    NotFoundError,
    RecordFilter,
    RecordOrdering,
    RecordStorageInterface,
    StorageError,
    SupabaseClient,
    SupabaseRecordStorage,
)

__all__ = [
    # Auth services
    "AuthenticatedUser",
    "AuthenticationError",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "SignUpResult",
    "SupabaseIdentityProvider",
    # Storage services
    "AuthorizationError",
    "ConnectionError",
    "ConstraintViolationError",
    "DuplicateError",
    "InMemoryRecordStorage",
    "NotFoundError",
    "RecordFilter",
    "RecordOrdering",
    "RecordStorageInterface",
    "StorageError",
    "SupabaseClient",
    "SupabaseRecordStorage",
]
