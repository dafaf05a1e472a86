"""
Pytest configuration and fixtures for ampet-core tests.

This module provides the database fixtures (a throwaway SQLite file per
test), in-memory account and record collaborators for pipeline tests, and
small helpers for building CSV uploads.
"""

import uuid
from typing import AsyncGenerator, Dict, List, Optional, Sequence

import pytest
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncEngine

from ampet_core.database.connection import create_engine
from ampet_core.database.session import SessionManager
from ampet_core.importer import (
    Account,
    FieldMapping,
    ParsedTable,
    PetRecord,
    RowImporter,
    classify_headers,
)
from ampet_core.models import Base, PetSpecies, Profile, ProfileStatus, UserRole


class FakeAccountDirectory:
    """In-memory tutor accounts with call recording and failure injection."""

    def __init__(self):
        self.accounts: Dict[str, Account] = {}
        self.lookups: List[str] = []
        self.create_calls: List[Dict] = []
        self.phone_updates: List[tuple] = []
        self.create_failures: Dict[str, Exception] = {}
        self.phone_failure: Optional[Exception] = None

    def add(self, email: str, full_name: str = "Existing Tutor") -> Account:
        account = Account(id=uuid.uuid4(), email=email, full_name=full_name)
        self.accounts[email] = account
        return account

    async def find_account_by_contact(self, identifier: str) -> Optional[Account]:
        self.lookups.append(identifier)
        return self.accounts.get(identifier)

    async def create_account(
        self,
        identifier: str,
        display_name: str,
        temporary_credential: str,
        role: UserRole = UserRole.TUTOR,
        invited_by: Optional[uuid.UUID] = None,
    ) -> Account:
        self.create_calls.append(
            {
                "identifier": identifier,
                "display_name": display_name,
                "temporary_credential": temporary_credential,
                "role": role,
                "invited_by": invited_by,
            }
        )
        if identifier in self.create_failures:
            raise self.create_failures[identifier]
        return self.add(identifier, display_name)

    async def update_account_phone(self, account_id: uuid.UUID, phone: str) -> None:
        self.phone_updates.append((account_id, phone))
        if self.phone_failure is not None:
            raise self.phone_failure


class FakeRecordStore:
    """In-memory pet records; ``failures`` maps a pet name to an exception."""

    def __init__(self):
        self.pets: List[PetRecord] = []
        self.calls: List[Dict] = []
        self.failures: Dict[str, Exception] = {}

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
        self.calls.append(
            {
                "tutor_account_id": tutor_account_id,
                "name": name,
                "species": species,
                "breed": breed,
                "microchip_id": microchip_id,
                "provenance_tag": provenance_tag,
                "idempotency_key": idempotency_key,
                "created_by": created_by,
                "birth_date": birth_date,
                "weight": weight,
                "rga_id": rga_id,
                "notes": notes,
            }
        )
        if name in self.failures:
            raise self.failures[name]
        record = PetRecord(
            id=uuid.uuid4(),
            tutor_id=tutor_account_id,
            name=name,
            species=species,
            breed=breed,
            microchip_id=microchip_id,
            registration_source=provenance_tag,
            rga_id=rga_id,
            notes=notes,
        )
        self.pets.append(record)
        return record


def make_csv(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> bytes:
    """Build a simple comma-separated upload (no quoting needed)."""
    lines = [",".join(headers)] + [",".join(row) for row in rows]
    return ("\n".join(lines) + "\n").encode("utf-8")


def make_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> ParsedTable:
    return ParsedTable(headers=tuple(headers), rows=tuple(tuple(row) for row in rows))


@pytest.fixture
def fake():
    """Faker seeded per test for reproducible data."""
    faker = Faker()
    Faker.seed(1234)
    return faker


@pytest.fixture
def csv_factory():
    return make_csv


@pytest.fixture
def table_factory():
    return make_table


@pytest.fixture
def accounts() -> FakeAccountDirectory:
    return FakeAccountDirectory()


@pytest.fixture
def records() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def importer(accounts, records) -> RowImporter:
    return RowImporter(accounts, records)


@pytest.fixture
def vet_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def standard_headers() -> tuple:
    return ("Nome", "Email", "Telefone", "Pet", "Especie", "Raca", "Microchip")


@pytest.fixture
def standard_mapping(standard_headers) -> FieldMapping:
    return classify_headers(standard_headers)


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine on a temporary file with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ampet_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_manager(test_engine) -> SessionManager:
    return SessionManager(test_engine)


@pytest.fixture
async def vet_profile(session_manager, fake) -> Profile:
    """A veterinarian profile that runs imports."""
    profile = Profile(
        email=fake.unique.email().lower(),
        full_name=fake.name(),
        role=UserRole.VET,
        status=ProfileStatus.ACTIVE,
        clinic_name="Clinica Vida Animal",
    )
    async with session_manager.get_transaction() as session:
        session.add(profile)
    return profile


@pytest.fixture
async def tutor_profile(session_manager) -> Profile:
    profile = Profile(
        email="ana.souza@example.com",
        full_name="Ana Souza",
        role=UserRole.TUTOR,
        status=ProfileStatus.ACTIVE,
    )
    async with session_manager.get_transaction() as session:
        session.add(profile)
    return profile
