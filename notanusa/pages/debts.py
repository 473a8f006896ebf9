"""
Debts & Receivables Page

DESIGN DECISION: Amount, paid amount and status are written together.
The status is derived from the two amounts in the create/patch model,
so a record can never be stored with a status that contradicts them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from notanusa.analytics import debt_progress, debt_summary
from notanusa.models.forms import DebtForm
from notanusa.models.records import (
    DebtReceivable,
    DebtReceivableCreate,
    DebtReceivablePatch,
    DebtType,
    RecordKind,
)
from notanusa.models.reports import DebtProgress, DebtSummary
from notanusa.pages.base import PageController
from notanusa.services.storage import RecordOrdering


class DebtsController(PageController):
    page_name = "debts"
    record_kind = RecordKind.DEBT_RECEIVABLE
    record_noun = "item"

    def __init__(self, session, today=None):
        super().__init__(session, today)
        self.items: list[DebtProgress] = []
        self.summary = DebtSummary()

    def _reset_data(self) -> None:
        self.items = []
        self.summary = DebtSummary()

    async def _fetch(self) -> None:
        records = await self.storage.list_records(
            RecordKind.DEBT_RECEIVABLE,
            ordering=[RecordOrdering(column="due_date")],
        )

        today = self.today()
        self.items = [debt_progress(record, today) for record in records]
        self.summary = debt_summary(records)

    @property
    def debts(self) -> list[DebtProgress]:
        return [item for item in self.items if item.record.type == DebtType.DEBT]

    @property
    def receivables(self) -> list[DebtProgress]:
        return [item for item in self.items if item.record.type == DebtType.RECEIVABLE]

    @property
    def overdue_count(self) -> int:
        return sum(1 for item in self.items if item.overdue)

    def find(self, record_id: UUID) -> Optional[DebtReceivable]:
        return next(
            (item.record for item in self.items if item.record.id == record_id), None
        )

    def form_for(self, record_id: Optional[UUID] = None) -> DebtForm:
        record = self.find(record_id) if record_id else None
        if record is None:
            return DebtForm()
        return DebtForm(
            type=record.type,
            party_name=record.party_name,
            amount=record.amount,
            paid_amount=record.paid_amount,
            due_date=record.due_date,
            description=record.description,
        )

    async def save(self, form: DebtForm) -> bool:
        result = self.validator.validate_debt(form)
        paid_amount = form.paid_amount if form.paid_amount is not None else Decimal("0")

        return await self._submit(
            result,
            create=lambda: DebtReceivableCreate(
                user_id=self.user_id,
                type=form.type,
                party_name=form.party_name,
                amount=form.amount,
                paid_amount=paid_amount,
                due_date=form.due_date,
                description=form.description or None,
            ),
            patch=lambda: DebtReceivablePatch(
                type=form.type,
                party_name=form.party_name,
                amount=form.amount,
                paid_amount=paid_amount,
                due_date=form.due_date,
                description=form.description or None,
                updated_at=datetime.now(timezone.utc),
            ),
            audit_details={"type": form.type.value, "party_name": form.party_name},
        )
