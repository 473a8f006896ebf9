"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run against Supabase in production
2. Use in-memory storage for testing and the offline demo
3. Keep page logic decoupled from the storage implementation

The interface is intentionally generic - one set of operations over
every record kind. Authorization is NOT done here: the Data Store's
row-level policies scope every call to the signed-in identity.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import BaseModel

from notanusa.models.records import RECORD_MODELS, DebtReceivablePatch, RecordKind


FilterValue = Union[str, int, Decimal, date, datetime, UUID, Enum, None]


class FilterOperator(str, Enum):
    """Comparison operators supported in list filters."""
    EQ = "eq"
    GTE = "gte"
    LTE = "lte"


class RecordFilter(BaseModel):
    """A single column filter, e.g. transaction_date >= 2024-01-01."""

    column: str
    operator: FilterOperator = FilterOperator.EQ
    value: Any = None

    @classmethod
    def eq(cls, column: str, value: FilterValue) -> "RecordFilter":
        return cls(column=column, operator=FilterOperator.EQ, value=value)

    @classmethod
    def gte(cls, column: str, value: FilterValue) -> "RecordFilter":
        return cls(column=column, operator=FilterOperator.GTE, value=value)

    @classmethod
    def lte(cls, column: str, value: FilterValue) -> "RecordFilter":
        return cls(column=column, operator=FilterOperator.LTE, value=value)

    @property
    def wire_value(self) -> Any:
        """Value as the Data Store expects it (strings for dates, ids, enums)."""
        return to_wire_value(self.value)


class RecordOrdering(BaseModel):
    """Sort key for list results."""

    column: str
    ascending: bool = True


def to_wire_value(value: Any) -> Any:
    """Convert a Python value to its JSON/PostgREST representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    return value


def to_row(model: BaseModel, exclude_unset: bool = False) -> dict[str, Any]:
    """
    Serialize a create or patch model to a row dict.

    Patches pass exclude_unset=True so only the fields the caller
    actually set are written.
    """
    return model.model_dump(mode="json", exclude_unset=exclude_unset)


def parse_record(kind: RecordKind, row: dict[str, Any]) -> BaseModel:
    """Validate a raw row into the typed record for its kind."""
    return RECORD_MODELS[kind].model_validate(row)


# Fields whose change requires the debt status to be derived again
DEBT_STATUS_INPUTS = {"amount", "paid_amount", "status"}


def debt_patch_needs_amounts(patch: BaseModel) -> bool:
    """True when the patch touches the status inputs but lacks one of the amounts."""
    changed = patch.model_fields_set
    return bool(changed & DEBT_STATUS_INPUTS) and not {"amount", "paid_amount"} <= changed


def complete_debt_patch(patch: BaseModel, existing: BaseModel) -> BaseModel:
    """
    Fill in the stored amount the patch left out.

    The completed patch carries both amounts, so its status is derived
    from them and written in the same update.
    """
    if not debt_patch_needs_amounts(patch):
        return patch
    changes = patch.model_dump(exclude_unset=True)
    changes.setdefault("amount", existing.amount)
    changes.setdefault("paid_amount", existing.paid_amount)
    changes.pop("status", None)
    return DebtReceivablePatch(**changes)


class RecordStorageInterface(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation (Supabase, in-memory, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_records(
        self,
        kind: RecordKind,
        filters: Optional[list[RecordFilter]] = None,
        ordering: Optional[list[RecordOrdering]] = None,
        limit: Optional[int] = None,
    ) -> list[BaseModel]:
        """
        List records of one kind.

        Transactions come back with their joined category
        (`categories(name, type)`), or None when uncategorized.

        Args:
            kind: Which table to read
            filters: Column filters, all must match
            ordering: Sort keys, applied in order
            limit: Maximum number of results

        Returns:
            Typed records visible to the current identity

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get_record(self, kind: RecordKind, record_id: UUID) -> Optional[BaseModel]:
        """
        Retrieve a record by its ID.

        Returns:
            The record if found (and visible), None otherwise
        """
        pass

    @abstractmethod
    async def insert_record(self, kind: RecordKind, record: BaseModel) -> BaseModel:
        """
        Insert a new record.

        Args:
            kind: Target table
            record: A create model (e.g. TransactionCreate)

        Returns:
            The stored record, with generated id and timestamps

        Raises:
            ConstraintViolationError: A check/foreign-key constraint failed
            AuthorizationError: The row-level policy rejected the write
            StorageError: Any other failure
        """
        pass

    @abstractmethod
    async def update_record(
        self,
        kind: RecordKind,
        record_id: UUID,
        patch: BaseModel,
    ) -> BaseModel:
        """
        Apply a patch to an existing record.

        Only fields explicitly set on the patch are written.

        Raises:
            NotFoundError: If the record doesn't exist or isn't visible
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_record(self, kind: RecordKind, record_id: UUID) -> None:
        """
        Delete a record by ID.

        Raises:
            NotFoundError: If the record doesn't exist or isn't visible
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations. The message is shown to the user."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConstraintViolationError(StorageError):
    """A check, not-null or foreign-key constraint rejected the write."""
    pass


class AuthorizationError(StorageError):
    """The row-level policy denied the operation."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
