"""
Supabase Storage Implementation

DESIGN DECISION: Supabase (Postgres + PostgREST) is the production backend:
1. Row-level security policies scope every query to the signed-in user
2. Check and foreign-key constraints are enforced by the database
3. Auth and data share one client, so the user's session token is
   attached to every table request automatically

TRADEOFFS:
- Client calls are synchronous HTTP requests (fine for a single user page)
- No multi-row transactions; every write is a single request

The implementation follows the abstract interface, so pages never see
PostgREST types.
"""

from typing import Any, Optional
from uuid import UUID

import structlog
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError
from supabase import Client, create_client

from notanusa.config import SupabaseSettings, get_settings
from notanusa.models.records import RecordKind
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
    complete_debt_patch,
    debt_patch_needs_amounts,
    parse_record,
    to_row,
)


logger = structlog.get_logger(__name__)

# Transactions are always read with their category joined in
TRANSACTION_SELECT = "*, categories(name, type)"

# Postgres / PostgREST error codes we translate
UNIQUE_VIOLATION = "23505"
CONSTRAINT_VIOLATIONS = {"23502", "23503", "23514", "22P02"}
INSUFFICIENT_PRIVILEGE = "42501"
NO_ROWS = "PGRST116"


def _select_columns(kind: RecordKind) -> str:
    return TRANSACTION_SELECT if kind == RecordKind.TRANSACTION else "*"


def _translate_api_error(error: APIError, action: str) -> StorageError:
    """Map a PostgREST error to our storage exception hierarchy."""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)
    text = f"{action}: {message}"

    if code == UNIQUE_VIOLATION:
        return DuplicateError(text)
    if code in CONSTRAINT_VIOLATIONS:
        return ConstraintViolationError(text)
    if code == INSUFFICIENT_PRIVILEGE:
        return AuthorizationError(text)
    if code == NO_ROWS:
        return NotFoundError(text)
    return StorageError(text)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Creates the client lazily and shares it between the auth
    provider and the record storage.
    """

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        self._client: Optional[Client] = None
        self._settings = settings or get_settings().supabase

    def connect(self) -> Client:
        """Create the Supabase client on first use."""
        if self._client is None:
            try:
                self._client = create_client(
                    self._settings.url,
                    self._settings.anon_key,
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}")

        return self._client

    def table(self, kind: RecordKind):
        """Query builder for one table."""
        return self.connect().table(kind.value)

    @property
    def auth(self):
        return self.connect().auth


class SupabaseRecordStorage(RecordStorageInterface):
    """
    Supabase implementation of record storage.

    Each RecordKind maps to the table of the same name.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    def _execute(self, query, action: str) -> Any:
        """Run a built query, translating backend errors."""
        try:
            return query.execute()
        except APIError as e:
            raise _translate_api_error(e, action)
        except StorageError:
            raise
        except Exception as e:
            # httpx transport errors and the like
            raise ConnectionError(f"{action}: {e}")

    def _parse_rows(self, kind: RecordKind, rows: list[dict]) -> list[BaseModel]:
        try:
            return [parse_record(kind, row) for row in rows]
        except ValidationError as e:
            raise StorageError(f"Unexpected {kind.value} data from the server: {e}")

    async def _stored(self, kind: RecordKind, rows: list[dict]) -> BaseModel:
        """The written row as a record. Transactions are read back with their category."""
        record = self._parse_rows(kind, rows)[0]
        if kind != RecordKind.TRANSACTION:
            return record
        return await self.get_record(kind, record.id) or record

    @staticmethod
    def _apply_filter(query, record_filter: RecordFilter):
        value = record_filter.wire_value
        if record_filter.operator == FilterOperator.EQ:
            if value is None:
                return query.is_(record_filter.column, "null")
            return query.eq(record_filter.column, value)
        if record_filter.operator == FilterOperator.GTE:
            return query.gte(record_filter.column, value)
        return query.lte(record_filter.column, value)

    async def list_records(
        self,
        kind: RecordKind,
        filters: Optional[list[RecordFilter]] = None,
        ordering: Optional[list[RecordOrdering]] = None,
        limit: Optional[int] = None,
    ) -> list[BaseModel]:
        """List records with optional filters and ordering."""
        action = f"Failed to load {kind.value}"
        try:
            query = self._client.table(kind).select(_select_columns(kind))
        except StorageError:
            raise
        except Exception as e:
            raise ConnectionError(f"{action}: {e}")

        for record_filter in filters or []:
            query = self._apply_filter(query, record_filter)
        for order in ordering or []:
            query = query.order(order.column, desc=not order.ascending)
        if limit is not None:
            query = query.limit(limit)

        response = self._execute(query, action)
        return self._parse_rows(kind, response.data or [])

    async def get_record(self, kind: RecordKind, record_id: UUID) -> Optional[BaseModel]:
        """Retrieve a record by its ID."""
        records = await self.list_records(
            kind,
            filters=[RecordFilter.eq("id", record_id)],
            limit=1,
        )
        return records[0] if records else None

    async def insert_record(self, kind: RecordKind, record: BaseModel) -> BaseModel:
        """Insert a record and return the stored row."""
        action = f"Failed to save {kind.value}"
        query = self._client.table(kind).insert(to_row(record))
        response = self._execute(query, action)

        rows = response.data or []
        if not rows:
            raise StorageError(f"{action}: the server returned no row")

        logger.debug("record_inserted", kind=kind.value, record_id=rows[0].get("id"))
        return await self._stored(kind, rows)

    async def update_record(
        self,
        kind: RecordKind,
        record_id: UUID,
        patch: BaseModel,
    ) -> BaseModel:
        """Apply a partial update."""
        action = f"Failed to update {kind.value}"
        if kind == RecordKind.DEBT_RECEIVABLE and debt_patch_needs_amounts(patch):
            existing = await self.get_record(kind, record_id)
            if existing is None:
                raise NotFoundError(f"{action}: record {record_id} not found")
            patch = complete_debt_patch(patch, existing)

        changes = to_row(patch, exclude_unset=True)

        if not changes:
            existing = await self.get_record(kind, record_id)
            if existing is None:
                raise NotFoundError(f"{action}: record {record_id} not found")
            return existing

        query = self._client.table(kind).update(changes).eq("id", str(record_id))
        response = self._execute(query, action)

        rows = response.data or []
        if not rows:
            # Either missing or hidden by the row-level policy
            raise NotFoundError(f"{action}: record {record_id} not found")

        logger.debug("record_updated", kind=kind.value, record_id=str(record_id))
        return await self._stored(kind, rows)

    async def delete_record(self, kind: RecordKind, record_id: UUID) -> None:
        """Delete a record by ID."""
        action = f"Failed to delete {kind.value}"
        query = self._client.table(kind).delete().eq("id", str(record_id))
        response = self._execute(query, action)

        if not response.data:
            raise NotFoundError(f"{action}: record {record_id} not found")

        logger.debug("record_deleted", kind=kind.value, record_id=str(record_id))
