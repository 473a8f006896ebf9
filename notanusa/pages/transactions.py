"""
Transactions Page

All transactions, newest first, with client-side filters and the
create/edit/delete form.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from notanusa.analytics import filter_transactions, totals_by_type
from notanusa.models.forms import TransactionForm
from notanusa.models.records import (
    Category,
    RecordKind,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    TransactionType,
)
from notanusa.models.reports import TransactionFilter
from notanusa.pages.base import PageController
from notanusa.services.storage import RecordOrdering


class TransactionsController(PageController):
    page_name = "transactions"
    record_kind = RecordKind.TRANSACTION
    record_noun = "transaction"

    def __init__(self, session, today=None):
        super().__init__(session, today)
        self.transactions: list[Transaction] = []
        self.categories: list[Category] = []
        self.filter = TransactionFilter()

    def _reset_data(self) -> None:
        self.transactions = []
        self.categories = []

    async def _fetch(self) -> None:
        transactions = await self.storage.list_records(
            RecordKind.TRANSACTION,
            ordering=[
                RecordOrdering(column="transaction_date", ascending=False),
                RecordOrdering(column="created_at", ascending=False),
            ],
        )
        categories = await self.storage.list_records(
            RecordKind.CATEGORY,
            ordering=[RecordOrdering(column="name")],
        )

        self.transactions = transactions
        self.categories = categories

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def set_filter(
        self,
        type: Optional[TransactionType] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> None:
        self.filter = TransactionFilter(type=type, date_from=date_from, date_to=date_to)

    def clear_filter(self) -> None:
        self.filter = TransactionFilter()

    @property
    def visible_transactions(self) -> list[Transaction]:
        return filter_transactions(self.transactions, self.filter)

    @property
    def visible_totals(self) -> tuple[Decimal, Decimal]:
        """(income, expense) of the filtered list."""
        return totals_by_type(self.visible_transactions)

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------

    def categories_for(self, transaction_type: TransactionType) -> list[Category]:
        """Categories offered in the form for the selected type, by name."""
        return [c for c in self.categories if c.type == transaction_type]

    def find(self, record_id: UUID) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == record_id), None)

    def form_for(self, record_id: Optional[UUID] = None) -> TransactionForm:
        """Form values for editing a transaction, or a blank form dated today."""
        transaction = self.find(record_id) if record_id else None
        if transaction is None:
            return TransactionForm(transaction_date=self.today())
        return TransactionForm(
            type=transaction.type,
            amount=transaction.amount,
            category_id=transaction.category_id,
            description=transaction.description,
            transaction_date=transaction.transaction_date,
        )

    async def save(self, form: TransactionForm) -> bool:
        category = next((c for c in self.categories if c.id == form.category_id), None)
        result = self.validator.validate_transaction(
            form,
            today=self.today(),
            category_type=category.type if category else None,
        )

        return await self._submit(
            result,
            create=lambda: TransactionCreate(
                user_id=self.user_id,
                category_id=form.category_id,
                type=form.type,
                amount=form.amount,
                description=form.description or None,
                transaction_date=form.transaction_date,
            ),
            patch=lambda: TransactionPatch(
                category_id=form.category_id,
                type=form.type,
                amount=form.amount,
                description=form.description or None,
                transaction_date=form.transaction_date,
                updated_at=datetime.now(timezone.utc),
            ),
            audit_details={"type": form.type.value, "amount": str(form.amount)},
        )
