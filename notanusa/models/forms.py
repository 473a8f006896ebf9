"""
Form Input Models

What the user typed, before validation. Required fields are Optional
here on purpose: FormValidator reports missing values as issues the
UI can show next to the field, instead of a pydantic error.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from notanusa.models.records import DebtType, TransactionType


class SignInForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = ""
    password: str = ""


class SignUpForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = ""
    password: str = ""
    full_name: str = ""
    business_name: Optional[str] = None


class ProfileForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = ""
    business_name: Optional[str] = None


class CategoryForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    type: TransactionType = TransactionType.INCOME


class TransactionForm(BaseModel):
    """Transaction form. Category is optional."""
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.INCOME
    amount: Optional[Decimal] = None
    category_id: Optional[UUID] = None
    description: Optional[str] = None
    transaction_date: Optional[date] = None


class DebtForm(BaseModel):
    """Debt/receivable form. A blank paid amount means nothing paid yet."""
    model_config = ConfigDict(str_strip_whitespace=True)

    type: DebtType = DebtType.DEBT
    party_name: str = ""
    amount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    description: Optional[str] = None


class ReportRangeForm(BaseModel):
    """Custom date range on the reports page (inclusive)."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None


class OpeningBalanceForm(BaseModel):
    """Cash on hand when bookkeeping started. May be negative."""

    opening_balance: Optional[Decimal] = None
    period_start: Optional[date] = None
