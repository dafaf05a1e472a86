"""
Validation and data processing utilities for imported records.

This module provides the text normalization used when reading spreadsheet
cells and headers, plus the email, phone, birth date and weight checks shared
by the schemas and the SQL collaborators.
"""

import re
import unicodedata
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class ValidationError(Exception):
    """One failed check: a readable message, the field, and a short code."""

    def __init__(
        self, message: str, field: Optional[str] = None, code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.code = code


class ValidationResult(Generic[T]):
    """Cleaned value of a check, or the errors that stopped it."""

    def __init__(self, value: Optional[T] = None):
        self.value = value
        self.errors: List[ValidationError] = []

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, error: ValidationError) -> None:
        self.errors.append(error)


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# Phone numbers are accepted in loose national or E.164 form, 8 to 15 digits
PHONE_ALLOWED_CHARS = re.compile(r"^\+?[0-9\s().-]+$")
PHONE_MIN_DIGITS = 8
PHONE_MAX_DIGITS = 15


def sanitize_string(value: str, max_length: Optional[int] = None) -> str:
    """
    NFKC-normalize ``value``, trim it and collapse inner whitespace.

    With ``max_length`` the result is cut to that many characters.
    """
    text = re.sub(r"\s+", " ", unicodedata.normalize("NFKC", value).strip())
    if max_length and len(text) > max_length:
        text = text[:max_length].rstrip()
    return text


def strip_accents(value: str) -> str:
    """Remove diacritics, e.g. ``"Espécie"`` becomes ``"Especie"``."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_key(value: str) -> str:
    """Lower-case, accent-free, whitespace-collapsed form used for matching."""
    return sanitize_string(strip_accents(value)).lower()


def normalize_email(email: str) -> str:
    """Trim and lower-case a contact email so lookups compare equal."""
    return sanitize_string(email).lower()


def validate_email(email: str) -> ValidationResult[str]:
    """Check an email address; the value is its trimmed, lower-cased form."""
    result = ValidationResult[str]()

    if not email:
        result.add_error(ValidationError("Email is required", "email", "required"))
        return result

    cleaned = normalize_email(email)

    if not EMAIL_PATTERN.match(cleaned):
        result.add_error(
            ValidationError("Invalid email format", "email", "invalid_format")
        )
        return result

    if len(cleaned) > 254:
        result.add_error(ValidationError("Email is too long", "email", "too_long"))
        return result

    result.value = cleaned
    return result


def validate_phone(phone: str) -> ValidationResult[str]:
    """Check a phone number; the value keeps only digits and a leading ``+``."""
    result = ValidationResult[str]()

    if not phone or not phone.strip():
        result.add_error(
            ValidationError("Phone number is required", "phone", "required")
        )
        return result

    phone = phone.strip()
    if not PHONE_ALLOWED_CHARS.match(phone):
        result.add_error(
            ValidationError("Invalid phone number format", "phone", "invalid_format")
        )
        return result

    digits = re.sub(r"\D", "", phone)
    if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
        result.add_error(
            ValidationError(
                f"Phone number must have between {PHONE_MIN_DIGITS} and "
                f"{PHONE_MAX_DIGITS} digits",
                "phone",
                "invalid_length",
            )
        )
        return result

    result.value = f"+{digits}" if phone.startswith("+") else digits
    return result


# Day-first formats come before ISO: clinics in Brazil write 05/03/2020
DATE_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y-%m-%d", "%d/%m/%y")
MAX_WEIGHT_KG = Decimal("999.99")


def validate_birth_date(
    value: str, today: Optional[date] = None
) -> ValidationResult[date]:
    """
    Parse a birth date written day-first or in ISO form.

    Dates in the future are rejected.
    """
    result = ValidationResult[date]()
    text = value.strip() if value else ""
    if not text:
        result.add_error(
            ValidationError("Birth date is required", "birth_date", "required")
        )
        return result

    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt).date()
            break
        except ValueError:
            continue
    else:
        result.add_error(
            ValidationError(
                f"Unrecognized date '{text}', expected DD/MM/YYYY",
                "birth_date",
                "invalid_format",
            )
        )
        return result

    if parsed > (today or date.today()):
        result.add_error(
            ValidationError("Birth date is in the future", "birth_date", "future")
        )
        return result

    result.value = parsed
    return result


def validate_weight(value: str) -> ValidationResult[Decimal]:
    """
    Parse a weight in kilograms.

    Accepts a decimal comma or point and an optional ``kg`` suffix, e.g.
    ``"12,5 kg"``. The result has two decimal places.
    """
    result = ValidationResult[Decimal]()
    text = re.sub(r"\s*kg$", "", (value or "").strip().lower()).replace(",", ".")
    if not text:
        result.add_error(ValidationError("Weight is required", "weight", "required"))
        return result

    try:
        weight = Decimal(text)
    except InvalidOperation:
        result.add_error(
            ValidationError(
                f"Invalid weight '{value.strip()}'", "weight", "invalid_format"
            )
        )
        return result

    if not weight.is_finite() or not Decimal(0) < weight <= MAX_WEIGHT_KG:
        result.add_error(
            ValidationError(
                f"Weight must be between 0 and {MAX_WEIGHT_KG} kg",
                "weight",
                "out_of_range",
            )
        )
        return result

    result.value = weight.quantize(Decimal("0.01"))
    return result
