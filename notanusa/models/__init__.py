"""
Data Models Package

This package contains all Pydantic models used in NotaNusa.
All data flowing through the system must conform to these schemas.
"""

from notanusa.models.records import (
    RECORD_MODELS,
    CashFlowCreate,
    CashFlowPatch,
    CashFlowPeriod,
    Category,
    CategoryCreate,
    CategoryPatch,
    CategoryRef,
    DebtReceivable,
    DebtReceivableCreate,
    DebtReceivablePatch,
    DebtStatus,
    DebtType,
    Profile,
    ProfileCreate,
    ProfilePatch,
    RecordKind,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    TransactionType,
    UserRole,
    derive_debt_status,
)
from notanusa.models.reports import (
    CategoryBreakdownEntry,
    CategoryTotal,
    DashboardSummary,
    DebtProgress,
    DebtSummary,
    MonthlyTotal,
    PeriodReport,
    ReportPeriod,
    TransactionFilter,
)
from notanusa.models.forms import (
    CategoryForm,
    DebtForm,
    OpeningBalanceForm,
    ProfileForm,
    ReportRangeForm,
    SignInForm,
    SignUpForm,
    TransactionForm,
)
from notanusa.models.validation import ValidationIssue, ValidationResult
from notanusa.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "RECORD_MODELS",
    "CashFlowCreate",
    "CashFlowPatch",
    "CashFlowPeriod",
    "Category",
    "CategoryCreate",
    "CategoryPatch",
    "CategoryRef",
    "DebtReceivable",
    "DebtReceivableCreate",
    "DebtReceivablePatch",
    "DebtStatus",
    "DebtType",
    "Profile",
    "ProfileCreate",
    "ProfilePatch",
    "RecordKind",
    "Transaction",
    "TransactionCreate",
    "TransactionPatch",
    "TransactionType",
    "UserRole",
    "derive_debt_status",
    # Report models
    "CategoryBreakdownEntry",
    "CategoryTotal",
    "DashboardSummary",
    "DebtProgress",
    "DebtSummary",
    "MonthlyTotal",
    "PeriodReport",
    "ReportPeriod",
    "TransactionFilter",
    # Form models
    "CategoryForm",
    "DebtForm",
    "OpeningBalanceForm",
    "ProfileForm",
    "ReportRangeForm",
    "SignInForm",
    "SignUpForm",
    "TransactionForm",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
