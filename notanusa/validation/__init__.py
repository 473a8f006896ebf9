"""Form validation."""

from notanusa.validation.validator import (
    FormValidator,
    ValidationFailure,
    ensure_valid,
)

__all__ = ["FormValidator", "ValidationFailure", "ensure_valid"]
