"""
Form Validation for Manual Entry

Imported spreadsheets are taken as-is, but records typed in by hand go
through these schemas first. Field aliases are the spreadsheet column
names, so a validated form dumps straight into record columns.

IMPORTANT: Validation NEVER silently fixes issues beyond whitespace
stripping and numeric coercion. Anything else is reported back to the form.
"""

from typing import Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from rateease.models.users import UserRole


class FormError(ValueError):
    """A form failed validation. ``errors`` maps field -> message."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "FormError":
        errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "form"
            errors[field] = error["msg"]
        return cls(errors)


class _ColumnForm(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    def to_columns(self) -> dict:
        """Dump as spreadsheet columns (alias -> value), skipping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PropertyForm(_ColumnForm):
    """New or edited property."""

    owner_name: str = Field(..., alias="Owner Name", min_length=3)
    phone_number: Optional[str] = Field(default=None, alias="Phone Number")
    town: str = Field(..., alias="Town", min_length=2)
    suburb: Optional[str] = Field(default=None, alias="Suburb")
    property_no: str = Field(..., alias="Property No", min_length=1)
    valuation_list_no: Optional[str] = Field(default=None, alias="Valuation List No.")
    account_number: Optional[str] = Field(default=None, alias="Account Number")
    property_type: Literal["Residential", "Commercial", "Industrial"] = Field(
        ..., alias="Property Type"
    )
    rateable_value: float = Field(..., alias="Rateable Value", gt=0)
    rate_impost: float = Field(..., alias="Rate Impost", gt=0)
    sanitation_charged: float = Field(default=0, alias="Sanitation Charged", ge=0)
    previous_balance: float = Field(default=0, alias="Previous Balance", ge=0)
    total_payment: float = Field(default=0, alias="Total Payment", ge=0)


class BopForm(_ColumnForm):
    """New or edited business operating permit."""

    business_name: str = Field(..., alias="Business Name", min_length=3)
    owner_name: str = Field(..., alias="Owner Name", min_length=3)
    phone_number: Optional[str] = Field(default=None, alias="Phone Number")
    town: Optional[str] = Field(default=None, alias="Town")
    permit_fee: float = Field(..., alias="Permit Fee", ge=0)
    payment: float = Field(default=0, alias="Payment", ge=0)


class UserForm(BaseModel):
    """Add/edit user dialog. A blank password or photo keeps the current one."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=3)
    email: str
    role: UserRole
    password: Optional[str] = None
    confirm_password: Optional[str] = None
    photo_url: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        local, _, domain = v.partition("@")
        if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
            raise ValueError("Please enter a valid email address.")
        return v.lower()

    @field_validator('password', 'confirm_password', 'photo_url')
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('photo_url')
    @classmethod
    def validate_photo_url(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith(("http://", "https://", "data:image/")):
            raise ValueError("Photo must be a web address or an uploaded image.")
        return v

    @model_validator(mode='after')
    def validate_password(self) -> 'UserForm':
        if self.password is not None:
            if len(self.password) < 6:
                raise ValueError("Password must be at least 6 characters.")
            if self.password != self.confirm_password:
                raise ValueError("Passwords do not match.")
        return self


def validate_form(form_cls: type[BaseModel], data: dict) -> BaseModel:
    """Validate raw form input, raising FormError with per-field messages."""
    try:
        return form_cls.model_validate(data)
    except ValidationError as exc:
        raise FormError.from_validation_error(exc) from exc
