"""
Interfaces of the account and record stores used by the row importer.

The importer only depends on these protocols. ``importer.sql`` provides
implementations backed by the ampet-core database; tests use in-memory
fakes. Implementations signal failure by raising ``CollaboratorError``
(or any other exception), whose message becomes the row's failure reason.
"""

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from ..models.pet import PetSpecies
from ..models.profile import UserRole


@dataclass(frozen=True)
class Account:
    """A tutor account as seen by the importer."""

    id: uuid.UUID
    email: str
    full_name: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class PetRecord:
    """A created pet record."""

    id: uuid.UUID
    tutor_id: uuid.UUID
    name: str
    species: PetSpecies
    breed: Optional[str] = None
    microchip_id: Optional[str] = None
    registration_source: Optional[str] = None
    birth_date: Optional[date] = None
    weight_kg: Optional[Decimal] = None
    rga_id: Optional[str] = None
    notes: Optional[str] = None


@runtime_checkable
class AccountDirectory(Protocol):
    """Lookup and creation of tutor accounts."""

    async def find_account_by_contact(self, identifier: str) -> Optional[Account]:
        ...

    async def create_account(
        self,
        identifier: str,
        display_name: str,
        temporary_credential: str,
        role: UserRole = UserRole.TUTOR,
        invited_by: Optional[uuid.UUID] = None,
    ) -> Account:
        ...

    async def update_account_phone(self, account_id: uuid.UUID, phone: str) -> None:
        ...


@runtime_checkable
class RecordStore(Protocol):
    """Creation of pet records."""

    async def create_pet(
        self,
        tutor_account_id: uuid.UUID,
        name: str,
        species: PetSpecies,
        breed: Optional[str],
        microchip_id: Optional[str],
        provenance_tag: str,
        *,
        idempotency_key: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        birth_date: Optional[str] = None,
        weight: Optional[str] = None,
        rga_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PetRecord:
        """
        Create a pet owned by ``tutor_account_id``.

        The optional details arrive as the raw spreadsheet text; parsing
        dates and weights is up to the store.
        """
        ...
