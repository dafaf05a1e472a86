"""
Pet model for the ampet-core package.

This module contains the Pet SQLAlchemy model with its tutor relationship
and the provenance columns written by the bulk importer.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    Date,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel


class PetSpecies(enum.Enum):
    """Enumeration of pet species supported by the platform."""

    DOG = "dog"
    CAT = "cat"
    BIRD = "bird"
    OTHER = "other"


class Pet(BaseModel):
    """
    Pet record owned by a tutor profile.

    ``registration_source`` tells where the record came from (manual entry,
    CSV import, ...). ``import_key`` is set by the bulk importer so that
    re-importing the same spreadsheet row does not create a second pet.
    """

    __tablename__ = "pets"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize Pet with default values."""
        if "species" not in kwargs:
            kwargs["species"] = PetSpecies.DOG

        super().__init__(**kwargs)

    tutor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="UUID of the pet's tutor profile",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Pet's name")

    species: Mapped[PetSpecies] = mapped_column(
        Enum(PetSpecies),
        nullable=False,
        default=PetSpecies.DOG,
        index=True,
        comment="Pet's species",
    )

    breed: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True, comment="Pet's breed"
    )

    microchip_id: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        index=True,
        comment="Microchip identification number",
    )

    birth_date: Mapped[Optional[date]] = mapped_column(
        Date, nullable=True, comment="Date of birth"
    )

    weight_kg: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2), nullable=True, comment="Weight in kilograms"
    )

    rga_id: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="Municipal animal registry number"
    )

    registration_source: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Where the record originated, e.g. 'CSV Import'",
    )

    import_key: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="Idempotency key of the import row that created this pet",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Free-form notes"
    )

    __table_args__ = (
        UniqueConstraint("import_key", name="uq_pets_import_key"),
        Index("idx_pets_tutor_name", "tutor_id", "name"),
    )

    tutor = relationship("Profile", back_populates="pets")

    def __repr__(self) -> str:
        return f"<Pet(id={self.id}, name='{self.name}', species='{self.species.value}', tutor_id={self.tutor_id})>"

    @property
    def is_imported(self) -> bool:
        """Whether the record came from a bulk import."""
        return self.import_key is not None
