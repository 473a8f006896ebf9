"""
Form Validation

DESIGN DECISION: Every form is validated on the client before any
network call. A form with an error-level issue is never submitted;
warnings are shown but do not block.

SCHEMA CHECKS:
- Required field presence
- Non-negative amounts with at most two decimal places
- Email and password format at sign-up

SEMANTIC CHECKS:
- Paid amount larger than the debt amount (warning, the debt is paid)
- Dates far in the future (warning)
- Report range end before start (error)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to correct.
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from notanusa.config import get_settings
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
from notanusa.models.records import TransactionType
from notanusa.models.validation import ValidationIssue, ValidationResult


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Amounts are numeric(15,2) in the Data Store
MAX_AMOUNT = Decimal("9999999999999.99")

FUTURE_DATE_TOLERANCE_DAYS = 366

# Column lengths in the Data Store
NAME_MAX_LENGTH = 200
CATEGORY_NAME_MAX_LENGTH = 100


class ValidationFailure(Exception):
    """A form was rejected before submission."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(FormValidator.get_user_friendly_summary(result))


def _missing(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required",
        severity="error",
        suggested_fix=f"Please fill in {label.lower()}",
    )


def _too_long(field: str, label: str, limit: int) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="too_long",
        message=f"{label} can be at most {limit} characters",
        severity="error",
    )


def _check_name(
    field: str,
    label: str,
    value: Optional[str],
    required: bool = True,
    limit: int = NAME_MAX_LENGTH,
) -> list[ValidationIssue]:
    if not value:
        return [_missing(field, label)] if required else []
    if len(value) > limit:
        return [_too_long(field, label, limit)]
    return []


def _check_amount(field: str, label: str, value: Optional[Decimal]) -> list[ValidationIssue]:
    issues = []
    if value is None:
        return issues

    if value < 0:
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} cannot be negative",
            severity="error",
            suggested_fix="Enter zero or a positive amount",
        ))
    elif value > MAX_AMOUNT:
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} is too large",
            severity="error",
        ))

    if value.as_tuple().exponent < -2:
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} can have at most two decimal places",
            severity="error",
        ))

    return issues


class FormValidator:
    """Validates form input for every page."""

    def __init__(self, min_password_length: Optional[int] = None):
        """
        Args:
            min_password_length: Override the configured minimum.
        """
        if min_password_length is None:
            min_password_length = get_settings().app.min_password_length
        self._min_password_length = min_password_length

    # ------------------------------------------------------------------
    # Session forms
    # ------------------------------------------------------------------

    def validate_sign_in(self, form: SignInForm) -> ValidationResult:
        issues = []
        if not form.email:
            issues.append(_missing("email", "Email"))
        if not form.password:
            issues.append(_missing("password", "Password"))
        return ValidationResult(form="sign_in", issues=issues)

    def validate_sign_up(self, form: SignUpForm) -> ValidationResult:
        """Email, password of at least the minimum length, and a full name."""
        issues = []

        if not form.email:
            issues.append(_missing("email", "Email"))
        elif not EMAIL_PATTERN.match(form.email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"'{form.email}' is not a valid email address",
                severity="error",
                suggested_fix="Use an address like name@example.com",
            ))

        if not form.password:
            issues.append(_missing("password", "Password"))
        elif len(form.password) < self._min_password_length:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {self._min_password_length} characters",
                severity="error",
            ))

        issues.extend(_check_name("full_name", "Full name", form.full_name))
        issues.extend(_check_name("business_name", "Business name", form.business_name, required=False))

        return ValidationResult(form="sign_up", issues=issues)

    def validate_profile(self, form: ProfileForm) -> ValidationResult:
        issues = _check_name("full_name", "Full name", form.full_name)
        issues.extend(_check_name("business_name", "Business name", form.business_name, required=False))
        return ValidationResult(form="profile", issues=issues)

    # ------------------------------------------------------------------
    # Record forms
    # ------------------------------------------------------------------

    def validate_category(self, form: CategoryForm) -> ValidationResult:
        issues = _check_name("name", "Category name", form.name, limit=CATEGORY_NAME_MAX_LENGTH)
        return ValidationResult(form="category", issues=issues)

    def validate_transaction(
        self,
        form: TransactionForm,
        today: Optional[date] = None,
        category_type: Optional[TransactionType] = None,
    ) -> ValidationResult:
        """
        Amount and date are required; category and description are optional.

        Args:
            category_type: Type of the selected category, when one is selected
        """
        today = today or date.today()
        issues = []

        if category_type is not None and category_type != form.type:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="inconsistent",
                message=f"The selected category is for {category_type.value}, not {form.type.value}",
                severity="error",
                suggested_fix="Pick a category of the same type",
            ))

        if form.amount is None:
            issues.append(_missing("amount", "Amount"))
        issues.extend(_check_amount("amount", "Amount", form.amount))

        if form.transaction_date is None:
            issues.append(_missing("transaction_date", "Date"))
        elif form.transaction_date > today + timedelta(days=FUTURE_DATE_TOLERANCE_DAYS):
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="future_date",
                message=f"Transaction date ({form.transaction_date}) is more than a year ahead",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return ValidationResult(form="transaction", issues=issues)

    def validate_debt(self, form: DebtForm) -> ValidationResult:
        """Party, amount and due date are required; paid amount defaults to zero."""
        issues = _check_name("party_name", "Party name", form.party_name)

        if form.amount is None:
            issues.append(_missing("amount", "Amount"))
        issues.extend(_check_amount("amount", "Amount", form.amount))
        issues.extend(_check_amount("paid_amount", "Paid amount", form.paid_amount))

        if form.due_date is None:
            issues.append(_missing("due_date", "Due date"))

        if (
            form.amount is not None
            and form.paid_amount is not None
            and form.paid_amount > form.amount >= 0
        ):
            issues.append(ValidationIssue(
                field="paid_amount",
                issue_type="inconsistent",
                message="Paid amount is larger than the amount; it will be marked as paid",
                severity="warning",
            ))

        return ValidationResult(form="debt", issues=issues)

    def validate_opening_balance(
        self,
        form: OpeningBalanceForm,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Amount and start date are required; the balance may be negative."""
        today = today or date.today()
        issues = []

        if form.opening_balance is None:
            issues.append(_missing("opening_balance", "Opening balance"))
        else:
            issues.extend(_check_amount("opening_balance", "Opening balance", abs(form.opening_balance)))

        if form.period_start is None:
            issues.append(_missing("period_start", "Start date"))
        elif form.period_start > today:
            issues.append(ValidationIssue(
                field="period_start",
                issue_type="future_date",
                message="Start date cannot be in the future",
                severity="error",
            ))

        return ValidationResult(form="opening_balance", issues=issues)

    def validate_report_range(self, form: ReportRangeForm) -> ValidationResult:
        issues = []
        if form.start_date is None:
            issues.append(_missing("start_date", "Start date"))
        if form.end_date is None:
            issues.append(_missing("end_date", "End date"))
        if form.start_date and form.end_date and form.end_date < form.start_date:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message="End date is before start date",
                severity="error",
                suggested_fix="Pick an end date on or after the start date",
            ))
        return ValidationResult(form="report_range", issues=issues)

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """
        One message for the form banner.

        Errors first, then warnings.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed"

        lines = [
            issue.message for issue in result.issues if issue.severity == "error"
        ]
        lines.extend(result.warnings)
        return "; ".join(lines)


def ensure_valid(result: ValidationResult) -> ValidationResult:
    """Raise ValidationFailure when the result has errors, else return it."""
    if result.has_errors:
        raise ValidationFailure(result)
    return result
