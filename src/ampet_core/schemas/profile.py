"""
Profile Pydantic schemas for validation and serialization.

This module contains the schemas used when tutor accounts are created
on behalf of a veterinarian.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models.profile import UserRole
from ..utils.validation import sanitize_string, validate_phone


class ProfileBase(BaseModel):
    """Base Profile schema with common fields."""

    model_config = ConfigDict(
        from_attributes=True,  # Can create from SQLAlchemy models
        use_enum_values=True,  # Serialize enums as values
        str_strip_whitespace=True,
    )

    email: EmailStr = Field(..., description="Contact email")
    full_name: str = Field(
        ..., description="Display name", min_length=1, max_length=200
    )
    phone: Optional[str] = Field(None, description="Contact phone", max_length=20)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are stored lower-cased so lookups are case-insensitive."""
        if ".." in v:
            raise ValueError("Email cannot contain consecutive dots")
        return v.lower()

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = sanitize_string(v, max_length=200)
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        result = validate_phone(v)
        if not result.is_valid:
            raise ValueError(result.errors[0].message)
        return result.value


class TutorAccountCreate(ProfileBase):
    """
    Schema for creating a tutor account from an imported spreadsheet row.

    The temporary credential is handed to the identity provider and never
    stored on the profile.
    """

    temporary_credential: str = Field(
        ..., min_length=8, description="One-time password for the first login"
    )
    role: UserRole = Field(UserRole.TUTOR, description="Account role")
    invited_by: Optional[UUID] = Field(
        None, description="Profile id of the veterinarian running the import"
    )

    @field_validator("role")
    @classmethod
    def only_tutors(cls, v: UserRole) -> UserRole:
        if v not in (UserRole.TUTOR, UserRole.TUTOR.value):
            raise ValueError("Imported accounts must have the tutor role")
        return v

