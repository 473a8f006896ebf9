"""
In-Memory Storage Implementation

Used by the test suite and by the offline demo mode when Supabase
is not configured. It behaves like the real Data Store where pages
can observe the difference:

- rows are scoped to the signed-in identity (row-level policy);
  an admin profile sees every row
- check constraints (non-negative amounts, enum values) reject writes
- deleting a category sets category_id to NULL on its transactions
- transactions are returned with their category joined in
- profiles and cash-flow periods have no delete policy
"""

from copy import deepcopy
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ValidationError

from notanusa.models.records import RECORD_MODELS, RecordKind, UserRole
from notanusa.services.storage.interface import (
    AuthorizationError,
    ConstraintViolationError,
    DuplicateError,
    FilterOperator,
    NotFoundError,
    RecordFilter,
    RecordOrdering,
    RecordStorageInterface,
    complete_debt_patch,
    parse_record,
)


# Tables without a DELETE policy: deletes match no rows
UNDELETABLE_KINDS = {RecordKind.PROFILE, RecordKind.CASH_FLOW}


def _owner_column(kind: RecordKind) -> str:
    return "id" if kind == RecordKind.PROFILE else "user_id"


def _comparable(value: Any) -> Any:
    """Normalize a value so row values and filter values compare cleanly."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _matches(row: dict[str, Any], record_filter: RecordFilter) -> bool:
    actual = _comparable(row.get(record_filter.column))
    expected = _comparable(record_filter.value)

    if record_filter.operator == FilterOperator.EQ:
        return actual == expected
    if actual is None or expected is None:
        return False
    if record_filter.operator == FilterOperator.GTE:
        return actual >= expected
    return actual <= expected


def _sort_key(column: str) -> Callable[[dict], tuple]:
    # NULLs sort last ascending (first descending), as in Postgres
    def key(row: dict) -> tuple:
        value = _comparable(row.get(column))
        return (value is None, value if value is not None else "")
    return key


class InMemoryRecordStorage(RecordStorageInterface):
    """
    Dictionary-backed record storage.

    Args:
        identity: Callable returning the signed-in user's id (or None).
                  Plays the part of auth.uid() in the row-level policies.
    """

    def __init__(self, identity: Callable[[], Optional[UUID]]):
        self._identity = identity
        self._tables: dict[RecordKind, dict[UUID, dict[str, Any]]] = {
            kind: {} for kind in RecordKind
        }

    # ------------------------------------------------------------------
    # Row-level policy emulation
    # ------------------------------------------------------------------

    def _caller(self) -> UUID:
        user_id = self._identity()
        if user_id is None:
            raise AuthorizationError("Not signed in")
        return user_id

    def _is_admin(self, user_id: UUID) -> bool:
        profile = self._tables[RecordKind.PROFILE].get(user_id)
        return bool(profile) and profile.get("role") == UserRole.ADMIN

    def _visible_rows(self, kind: RecordKind) -> list[dict[str, Any]]:
        user_id = self._identity()
        if user_id is None:
            return []
        rows = list(self._tables[kind].values())
        if self._is_admin(user_id):
            return rows
        owner = _owner_column(kind)
        return [row for row in rows if row.get(owner) == user_id]

    def _find_visible(self, kind: RecordKind, record_id: UUID) -> Optional[dict[str, Any]]:
        for row in self._visible_rows(kind):
            if row["id"] == record_id:
                return row
        return None

    # ------------------------------------------------------------------
    # Constraint emulation
    # ------------------------------------------------------------------

    def _validate_row(self, kind: RecordKind, row: dict[str, Any]) -> dict[str, Any]:
        """Run the row through its record model; this is where check constraints live."""
        try:
            record = RECORD_MODELS[kind].model_validate(row)
        except ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConstraintViolationError(f"Constraint violated on {kind.value}: {messages}")

        if kind == RecordKind.TRANSACTION and row.get("category_id") is not None:
            if row["category_id"] not in self._tables[RecordKind.CATEGORY]:
                raise ConstraintViolationError(
                    f"Constraint violated on {kind.value}: category {row['category_id']} does not exist"
                )

        return record.model_dump(exclude={"category"} if kind == RecordKind.TRANSACTION else None)

    def _with_join(self, kind: RecordKind, row: dict[str, Any]) -> dict[str, Any]:
        result = deepcopy(row)
        if kind == RecordKind.TRANSACTION:
            category = self._tables[RecordKind.CATEGORY].get(row.get("category_id"))
            result["categories"] = (
                {"name": category["name"], "type": category["type"]} if category else None
            )
        return result

    def _to_record(self, kind: RecordKind, row: dict[str, Any]) -> BaseModel:
        return parse_record(kind, self._with_join(kind, row))

    # ------------------------------------------------------------------
    # Interface
    # ------------------------------------------------------------------

    async def list_records(
        self,
        kind: RecordKind,
        filters: Optional[list[RecordFilter]] = None,
        ordering: Optional[list[RecordOrdering]] = None,
        limit: Optional[int] = None,
    ) -> list[BaseModel]:
        rows = [
            row for row in self._visible_rows(kind)
            if all(_matches(row, f) for f in filters or [])
        ]

        # Stable sorts applied from the least significant key
        for order in reversed(ordering or []):
            rows.sort(key=_sort_key(order.column), reverse=not order.ascending)

        if limit is not None:
            rows = rows[:limit]

        return [self._to_record(kind, row) for row in rows]

    async def get_record(self, kind: RecordKind, record_id: UUID) -> Optional[BaseModel]:
        row = self._find_visible(kind, record_id)
        return self._to_record(kind, row) if row else None

    async def insert_record(self, kind: RecordKind, record: BaseModel) -> BaseModel:
        caller = self._caller()
        row = record.model_dump()

        owner = _owner_column(kind)
        if row.get(owner) != caller and not self._is_admin(caller):
            raise AuthorizationError(
                f"New row violates row-level security policy for table \"{kind.value}\""
            )

        now = datetime.now(timezone.utc)
        model_fields = RECORD_MODELS[kind].model_fields
        row.setdefault("id", uuid4())
        if "created_at" in model_fields:
            row["created_at"] = now
        if "updated_at" in model_fields:
            row.setdefault("updated_at", now)

        if row["id"] in self._tables[kind]:
            raise DuplicateError(f"Duplicate key value violates unique constraint on {kind.value}")

        stored = self._validate_row(kind, row)
        self._tables[kind][stored["id"]] = stored
        return self._to_record(kind, stored)

    async def update_record(
        self,
        kind: RecordKind,
        record_id: UUID,
        patch: BaseModel,
    ) -> BaseModel:
        existing = self._find_visible(kind, record_id)
        if existing is None:
            raise NotFoundError(f"Failed to update {kind.value}: record {record_id} not found")

        if kind == RecordKind.DEBT_RECEIVABLE:
            patch = complete_debt_patch(patch, parse_record(kind, existing))

        merged = {**existing, **patch.model_dump(exclude_unset=True)}
        stored = self._validate_row(kind, merged)
        self._tables[kind][record_id] = stored
        return self._to_record(kind, stored)

    async def delete_record(self, kind: RecordKind, record_id: UUID) -> None:
        existing = self._find_visible(kind, record_id)
        if existing is None or kind in UNDELETABLE_KINDS:
            raise NotFoundError(f"Failed to delete {kind.value}: record {record_id} not found")

        del self._tables[kind][record_id]

        if kind == RecordKind.CATEGORY:
            # ON DELETE SET NULL
            for row in self._tables[RecordKind.TRANSACTION].values():
                if row.get("category_id") == record_id:
                    row["category_id"] = None
