"""
Pet Pydantic schemas for validation.

``PetCreate`` receives spreadsheet text, so birth dates and weights are
accepted in the forms clinics type them and converted here.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.pet import PetSpecies
from ..utils.validation import sanitize_string, validate_birth_date, validate_weight


class PetBase(BaseModel):
    """Base Pet schema with common fields."""

    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    name: str = Field(..., description="Pet's name", min_length=1, max_length=100)
    species: PetSpecies = Field(PetSpecies.DOG, description="Pet's species")
    breed: Optional[str] = Field(None, description="Pet's breed", max_length=100)
    microchip_id: Optional[str] = Field(
        None, description="Microchip identification number", max_length=50
    )
    birth_date: Optional[date] = Field(None, description="Date of birth")
    weight_kg: Optional[Decimal] = Field(None, description="Weight in kilograms")
    rga_id: Optional[str] = Field(
        None, description="Municipal animal registry (RGA) number", max_length=50
    )
    notes: Optional[str] = Field(None, description="Free-form notes")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = sanitize_string(v, max_length=100)
        if not v:
            raise ValueError("Pet name cannot be empty")
        return v

    @field_validator("breed", "microchip_id", "rga_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = sanitize_string(v)
        return v or None

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None

    @field_validator("birth_date", mode="before")
    @classmethod
    def parse_birth_date(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        if not v.strip():
            return None
        result = validate_birth_date(v)
        if not result.is_valid:
            raise ValueError(result.errors[0].message)
        return result.value

    @field_validator("weight_kg", mode="before")
    @classmethod
    def parse_weight(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        if not v.strip():
            return None
        result = validate_weight(v)
        if not result.is_valid:
            raise ValueError(result.errors[0].message)
        return result.value


class PetCreate(PetBase):
    """Schema for creating a pet record."""

    tutor_id: UUID = Field(..., description="Tutor profile id")
    registration_source: Optional[str] = Field(
        None, description="Provenance tag", max_length=50
    )
    import_key: Optional[str] = Field(
        None, description="Idempotency key of the import row", max_length=64
    )
    created_by: Optional[UUID] = Field(
        None, description="Profile id of the veterinarian creating the record"
    )
