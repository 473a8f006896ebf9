"""
Core Data Models for NotaNusa

These models define the strict schemas for every row kind the
Data Store holds. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Mirror the check constraints of the database tables

DESIGN DECISION: Partial updates are explicit per-entity patch models
(every field optional) rather than loose dictionaries. Only the fields
that were actually set are sent to the Data Store.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordKind(str, Enum):
    """
    Row kinds held by the Data Store.

    The value is the table name.
    """
    PROFILE = "profiles"
    CATEGORY = "categories"
    TRANSACTION = "transactions"
    DEBT_RECEIVABLE = "debts_receivables"
    CASH_FLOW = "cash_flow"


class UserRole(str, Enum):
    """Role stored on the profile. Admin bypass is enforced by the database."""
    ADMIN = "admin"
    USER = "user"


class TransactionType(str, Enum):
    """Direction of money. Categories share the same two types."""
    INCOME = "income"
    EXPENSE = "expense"


class DebtType(str, Enum):
    """Money we owe (debt) or money owed to us (receivable)."""
    DEBT = "debt"
    RECEIVABLE = "receivable"


class DebtStatus(str, Enum):
    """
    Settlement status of a debt/receivable.

    CRITICAL: Never set by hand. Always derived from
    amount and paid_amount with derive_debt_status().
    """
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


def derive_debt_status(amount: Decimal, paid_amount: Decimal) -> DebtStatus:
    """
    Derive the settlement status.

    paid_amount >= amount      -> paid
    0 < paid_amount < amount   -> partial
    otherwise                  -> pending
    """
    if paid_amount >= amount:
        return DebtStatus.PAID
    if paid_amount > 0:
        return DebtStatus.PARTIAL
    return DebtStatus.PENDING


# =============================================================================
# PROFILE
# =============================================================================

class Profile(BaseModel):
    """Owner profile. The id is the identity id from the auth service."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    full_name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.USER
    business_name: Optional[str] = Field(default=None, max_length=200)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        """Business name when set, otherwise the person's name."""
        return self.business_name or self.full_name


class ProfileCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    full_name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.USER
    business_name: Optional[str] = Field(default=None, max_length=200)


class ProfilePatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    business_name: Optional[str] = Field(default=None, max_length=200)
    updated_at: Optional[datetime] = None


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A user-defined category.

    Names are unique per owner by convention only; the database
    does not enforce it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    created_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType


class CategoryPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[TransactionType] = None


class CategoryRef(BaseModel):
    """The category columns embedded in a transaction row by the join."""

    name: str
    type: Optional[TransactionType] = None


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry.

    `category` holds the joined category (`categories(name, type)`)
    when the row was read with the join, None when the transaction
    is uncategorized (including after its category was deleted).
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    id: UUID
    user_id: UUID
    category_id: Optional[UUID] = None
    type: TransactionType
    amount: Decimal = Field(..., ge=0)
    description: Optional[str] = None
    transaction_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    category: Optional[CategoryRef] = Field(default=None, alias="categories")

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expense as negative."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount


class TransactionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID
    category_id: Optional[UUID] = None
    type: TransactionType
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    description: Optional[str] = None
    transaction_date: date


class TransactionPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: Optional[UUID] = None
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    description: Optional[str] = None
    transaction_date: Optional[date] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# DEBT / RECEIVABLE
# =============================================================================

class DebtReceivable(BaseModel):
    """A debt we owe or a receivable owed to us, with partial payments."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    user_id: UUID
    type: DebtType
    party_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    due_date: date
    status: DebtStatus = DebtStatus.PENDING
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.paid_amount


class DebtReceivableCreate(BaseModel):
    """
    New debt/receivable.

    The status is always derived from the amounts; any value passed
    in is overwritten.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID
    type: DebtType
    party_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    due_date: date
    status: DebtStatus = DebtStatus.PENDING
    description: Optional[str] = None

    @model_validator(mode='after')
    def derive_status(self) -> 'DebtReceivableCreate':
        self.status = derive_debt_status(self.amount, self.paid_amount)
        return self


class DebtReceivablePatch(BaseModel):
    """
    Partial update of a debt/receivable.

    When both amounts are present the status is derived and sent in
    the same write. The storage layer fills in a missing amount from
    the stored row before writing.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: Optional[DebtType] = None
    party_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    paid_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    due_date: Optional[date] = None
    status: Optional[DebtStatus] = None
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode='after')
    def derive_status(self) -> 'DebtReceivablePatch':
        if self.amount is not None and self.paid_amount is not None:
            self.status = derive_debt_status(self.amount, self.paid_amount)
        return self


# =============================================================================
# CASH FLOW PERIOD
# =============================================================================

class CashFlowPeriod(BaseModel):
    """Opening balance for a bookkeeping period."""

    id: UUID
    user_id: UUID
    opening_balance: Decimal = Decimal("0")
    period_start: date
    period_end: Optional[date] = None
    created_at: Optional[datetime] = None


class CashFlowCreate(BaseModel):
    user_id: UUID
    opening_balance: Decimal = Field(default=Decimal("0"), decimal_places=2)
    period_start: date
    period_end: Optional[date] = None

    @model_validator(mode='after')
    def validate_period(self) -> 'CashFlowCreate':
        if self.period_end and self.period_end < self.period_start:
            raise ValueError("Period end cannot be before period start")
        return self


class CashFlowPatch(BaseModel):
    opening_balance: Optional[Decimal] = Field(default=None, decimal_places=2)
    period_start: Optional[date] = None
    period_end: Optional[date] = None

    @model_validator(mode='after')
    def validate_period(self) -> 'CashFlowPatch':
        if self.period_start and self.period_end and self.period_end < self.period_start:
            raise ValueError("Period end cannot be before period start")
        return self


# Record class per kind, used to parse rows coming back from storage
RECORD_MODELS: dict[RecordKind, type[BaseModel]] = {
    RecordKind.PROFILE: Profile,
    RecordKind.CATEGORY: Category,
    RecordKind.TRANSACTION: Transaction,
    RecordKind.DEBT_RECEIVABLE: DebtReceivable,
    RecordKind.CASH_FLOW: CashFlowPeriod,
}
