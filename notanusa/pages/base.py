"""
Page Controller Base

Every page runs the same cycle:

    IDLE --load--> LOADING --fetched--> READY
    READY --submit/delete--> SUBMITTING --done--> READY (reloaded)

DESIGN DECISION: Controllers hold no UI code. The Streamlit app reads
their attributes and calls their methods, so the whole cycle is
testable with the in-memory store.

ERROR HANDLING:
- StorageError never leaves a controller. The message is kept in
  error_message (page) or form_error (open form) and audited.
- A failed load keeps the previous data on screen.
- A failed save keeps the form open.
- A record model that rejects the form input is reported like a failed save.
- Nothing is retried automatically.
"""

from datetime import date
from enum import Enum
from typing import Any, Callable, Hashable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError

from notanusa.audit import AuditLogger
from notanusa.models.records import RecordKind
from notanusa.models.validation import ValidationResult
from notanusa.services.storage import RecordStorageInterface, StorageError
from notanusa.session import SessionContext
from notanusa.validation import FormValidator, ValidationFailure, ensure_valid


logger = structlog.get_logger(__name__)


class PageState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"


class PageController:
    """
    Shared load, form and delete handling.

    Subclasses set `page_name` and implement `_fetch()` and `_reset_data()`.
    Record pages also set `record_kind` and `record_noun`.
    """

    page_name: str = "page"
    record_kind: Optional[RecordKind] = None
    record_noun: str = "record"

    def __init__(
        self,
        session: SessionContext,
        today: Optional[Callable[[], date]] = None,
    ):
        """
        Args:
            session: The injected session context
            today: Clock for date-relative queries (tests pin it)
        """
        self.session = session
        self._today = today or date.today

        self.state = PageState.IDLE
        self.error_message: Optional[str] = None
        self._loaded_key: Optional[Hashable] = None
        self._loaded_user: Optional[UUID] = None

        # Form state
        self.form_open = False
        self.editing_id: Optional[UUID] = None
        self.form_error: Optional[str] = None
        self.validation: Optional[ValidationResult] = None

        # Delete confirmation
        self.pending_delete_id: Optional[UUID] = None

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def storage(self) -> RecordStorageInterface:
        return self.session.storage

    @property
    def audit(self) -> AuditLogger:
        return self.session.audit_logger

    @property
    def validator(self) -> FormValidator:
        return self.session.validator

    @property
    def user_id(self) -> Optional[UUID]:
        return self.session.user_id

    def today(self) -> date:
        return self._today()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _filter_key(self) -> Hashable:
        """Filters that require a re-fetch when they change."""
        return None

    def _load_key(self) -> Hashable:
        return (self.session.user_id, self._filter_key())

    @property
    def needs_reload(self) -> bool:
        """True before the first load and whenever identity or filters changed."""
        return self.state == PageState.IDLE or self._loaded_key != self._load_key()

    async def _fetch(self) -> None:
        """Query storage and compute the page data. Assign results last."""
        raise NotImplementedError

    def _reset_data(self) -> None:
        """Drop page data (identity changed)."""
        raise NotImplementedError

    async def load(self) -> bool:
        """
        Fetch the page data.

        Returns False when the fetch failed; the previous data stays.
        """
        if not self.session.is_authenticated:
            self._reset_data()
            self._loaded_user = None
            self.error_message = "Please sign in to continue"
            self.state = PageState.READY
            return False

        if self._loaded_user != self.session.user_id:
            self._reset_data()

        key = self._load_key()
        self.state = PageState.LOADING
        try:
            await self._fetch()
        except StorageError as e:
            self.error_message = f"Failed to load {self.page_name}: {e}"
            logger.warning("page_load_failed", page=self.page_name, error=str(e))
            await self.audit.log_load_failed(self.page_name, str(e), self.user_id)
            self.state = PageState.READY
            return False

        self._loaded_key = key
        self._loaded_user = self.session.user_id
        self.error_message = None
        self.state = PageState.READY
        return True

    async def ensure_loaded(self) -> bool:
        """Load only if needed. Returns True when data is current."""
        if self.needs_reload:
            return await self.load()
        return True

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def open_create_form(self) -> None:
        self.form_open = True
        self.editing_id = None
        self.form_error = None
        self.validation = None

    def open_edit_form(self, record_id: UUID) -> None:
        self.form_open = True
        self.editing_id = record_id
        self.form_error = None
        self.validation = None

    def close_form(self) -> None:
        self.form_open = False
        self.editing_id = None
        self.form_error = None
        self.validation = None

    async def _submit(
        self,
        result: ValidationResult,
        create: Callable[[], BaseModel],
        patch: Callable[[], BaseModel],
        audit_details: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Validate, then insert (or update when editing), then reload.

        Args:
            result: Validation of the submitted form
            create: Builds the create model for a new record
            patch: Builds the patch model for the record being edited
        """
        self.validation = result
        try:
            ensure_valid(result)
        except ValidationFailure as e:
            self.form_error = str(e)
            await self.audit.log_validation_failed(result, self.user_id)
            return False

        record_id = self.editing_id
        try:
            payload = create() if record_id is None else patch()
        except ValidationError as e:
            # Record model limits the form checks do not cover
            message = "; ".join(err["msg"] for err in e.errors())
            self.form_error = f"Failed to save {self.record_noun}: {message}"
            await self.audit.log_save_failed(
                self.record_kind.value, message, self.user_id, record_id
            )
            return False

        self.form_error = None
        self.state = PageState.SUBMITTING
        try:
            if record_id is None:
                record = await self.storage.insert_record(self.record_kind, payload)
                await self.audit.log_record_created(
                    self.record_kind.value, record.id, self.user_id, audit_details
                )
            else:
                record = await self.storage.update_record(self.record_kind, record_id, payload)
                await self.audit.log_record_updated(
                    self.record_kind.value,
                    record.id,
                    self.user_id,
                    sorted(payload.model_fields_set),
                )
        except StorageError as e:
            self.form_error = str(e) or f"Failed to save {self.record_noun}"
            await self.audit.log_save_failed(
                self.record_kind.value, str(e), self.user_id, record_id
            )
            self.state = PageState.READY
            return False

        self.close_form()
        await self.load()
        return True

    # ------------------------------------------------------------------
    # Delete with confirmation
    # ------------------------------------------------------------------

    @property
    def delete_prompt(self) -> str:
        return f"Are you sure you want to delete this {self.record_noun}?"

    def request_delete(self, record_id: UUID) -> None:
        self.pending_delete_id = record_id

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    async def confirm_delete(self) -> bool:
        """Delete the record awaiting confirmation, then reload."""
        record_id = self.pending_delete_id
        if record_id is None:
            return False
        self.pending_delete_id = None

        self.state = PageState.SUBMITTING
        try:
            await self.storage.delete_record(self.record_kind, record_id)
        except StorageError as e:
            self.error_message = f"Failed to delete {self.record_noun}: {e}"
            await self.audit.log_delete_failed(
                self.record_kind.value, record_id, str(e), self.user_id
            )
            self.state = PageState.READY
            return False

        await self.audit.log_record_deleted(self.record_kind.value, record_id, self.user_id)
        await self.load()
        return True

