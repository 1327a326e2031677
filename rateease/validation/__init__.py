"""Form validation package."""

from rateease.validation.forms import (
    BopForm,
    FormError,
    PropertyForm,
    UserForm,
    validate_form,
)

__all__ = ["BopForm", "FormError", "PropertyForm", "UserForm", "validate_form"]
