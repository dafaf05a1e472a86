"""
Tests for the row importer, run against the in-memory collaborators.
"""

import re
import uuid

import pytest

from ampet_core.exceptions import CollaboratorError
from ampet_core.importer import (
    MISSING_REQUIRED_REASON,
    DomainField,
    FieldMapping,
    RowImporter,
    build_idempotency_key,
    classify_headers,
    extract_row,
    generate_temporary_credential,
)
from ampet_core.models import PetSpecies, UserRole
from ampet_core.utils.config import ImportSettings

HEADERS = ("Nome", "Email", "Pet", "Especie")


@pytest.fixture
def mapping():
    return classify_headers(HEADERS)


class TestRowImporter:
    """Test cases for RowImporter.run."""

    async def test_new_tutor_and_pet(
        self, importer, accounts, records, table_factory, mapping, vet_id
    ):
        table = table_factory(HEADERS, [["Maria Silva", "maria@x.com", "Thor", "Gato"]])

        report = await importer.run(table, mapping, importer_id=vet_id)

        assert report.total_rows == 1
        assert report.success_count == 1
        assert report.errors == ()

        assert len(accounts.create_calls) == 1
        call = accounts.create_calls[0]
        assert call["identifier"] == "maria@x.com"
        assert call["display_name"] == "Maria Silva"
        assert call["role"] is UserRole.TUTOR
        assert call["invited_by"] == vet_id

        assert len(records.pets) == 1
        pet = records.pets[0]
        assert pet.name == "Thor"
        assert pet.species is PetSpecies.CAT
        assert pet.breed is None
        assert pet.microchip_id is None
        assert pet.registration_source == "CSV Import"
        assert pet.tutor_id == accounts.accounts["maria@x.com"].id
        assert records.calls[0]["created_by"] == vet_id

    async def test_existing_tutor_is_reused(
        self, importer, accounts, records, table_factory, mapping
    ):
        existing = accounts.add("joao@x.com", "Joao")
        table = table_factory(HEADERS, [["Joao", "joao@x.com", "Rex", ""]])

        report = await importer.run(table, mapping)

        assert report.success_count == 1
        assert accounts.create_calls == []
        assert records.pets[0].tutor_id == existing.id
        assert records.pets[0].species is PetSpecies.DOG

    async def test_lookup_uses_normalized_email(
        self, importer, accounts, table_factory, mapping
    ):
        accounts.add("joao@x.com", "Joao")
        table = table_factory(HEADERS, [["Joao", "  JOAO@X.com ", "Rex", ""]])

        report = await importer.run(table, mapping)

        assert report.success_count == 1
        assert accounts.lookups == ["joao@x.com"]
        assert accounts.create_calls == []

    async def test_missing_required_value(
        self, importer, accounts, records, table_factory, mapping
    ):
        table = table_factory(
            HEADERS,
            [
                ["Maria", "maria@x.com", "Thor", "Gato"],
                ["Joao", "", "Rex", "Cachorro"],
            ],
        )

        report = await importer.run(table, mapping)

        assert report.total_rows == 2
        assert report.success_count == 1
        assert len(report.errors) == 1
        assert report.errors[0].row_number == 3
        assert report.errors[0].failure_reason == MISSING_REQUIRED_REASON
        assert accounts.lookups == ["maria@x.com"]
        assert len(records.pets) == 1

    async def test_whitespace_only_value_counts_as_missing(
        self, importer, table_factory, mapping
    ):
        table = table_factory(HEADERS, [["   ", "maria@x.com", "Thor", ""]])

        report = await importer.run(table, mapping)

        assert report.errors[0].failure_reason == MISSING_REQUIRED_REASON

    async def test_failure_does_not_stop_later_rows(
        self, importer, accounts, records, table_factory, mapping
    ):
        rows = [[f"Tutor {i}", f"t{i}@x.com", f"Pet {i}", ""] for i in range(5)]
        accounts.create_failures["t2@x.com"] = CollaboratorError(
            "account already exists"
        )
        table = table_factory(HEADERS, rows)

        report = await importer.run(table, mapping)

        assert report.total_rows == 5
        assert report.success_count == 4
        assert [(e.row_number, e.failure_reason) for e in report.errors] == [
            (4, "account already exists")
        ]
        assert [pet.name for pet in records.pets] == [
            "Pet 0",
            "Pet 1",
            "Pet 3",
            "Pet 4",
        ]

    async def test_unexpected_exception_message_is_reason(
        self, importer, records, table_factory, mapping
    ):
        records.failures["Thor"] = RuntimeError("storage unavailable")
        table = table_factory(HEADERS, [["Maria", "maria@x.com", "Thor", ""]])

        report = await importer.run(table, mapping)

        assert report.errors[0].failure_reason == "storage unavailable"

    async def test_exception_without_message(
        self, importer, records, table_factory, mapping
    ):
        records.failures["Thor"] = RuntimeError()
        table = table_factory(HEADERS, [["Maria", "maria@x.com", "Thor", ""]])

        report = await importer.run(table, mapping)

        assert report.errors[0].failure_reason == "unknown error"

    async def test_pet_failure_keeps_created_account(
        self, importer, accounts, records, table_factory, mapping
    ):
        records.failures["Thor"] = CollaboratorError("tutor account not found")
        table = table_factory(HEADERS, [["Maria", "maria@x.com", "Thor", ""]])

        report = await importer.run(table, mapping)

        assert report.success_count == 0
        assert "maria@x.com" in accounts.accounts

    async def test_same_new_tutor_on_two_rows_creates_one_account(
        self, importer, accounts, records, table_factory, mapping
    ):
        table = table_factory(
            HEADERS,
            [
                ["Maria", "maria@x.com", "Thor", "Gato"],
                ["Maria", "maria@x.com", "Mel", "Cachorro"],
            ],
        )

        report = await importer.run(table, mapping)

        assert report.success_count == 2
        assert len(accounts.create_calls) == 1
        assert records.pets[0].tutor_id == records.pets[1].tutor_id

    async def test_empty_table(self, importer, table_factory, mapping):
        progress = []
        report = await importer.run(
            table_factory(HEADERS, []), mapping, on_progress=progress.append
        )

        assert report.total_rows == 0
        assert progress == []


class TestPhoneUpdate:
    """Test cases for the best-effort phone update of new tutors."""

    HEADERS = ("Nome", "Email", "Telefone", "Pet")

    async def test_phone_set_on_new_account(self, importer, accounts, table_factory):
        table = table_factory(
            self.HEADERS, [["Maria", "maria@x.com", "(11) 98765-4321", "Thor"]]
        )

        await importer.run(table, classify_headers(self.HEADERS))

        account_id = accounts.accounts["maria@x.com"].id
        assert accounts.phone_updates == [(account_id, "(11) 98765-4321")]

    async def test_phone_not_touched_for_existing_account(
        self, importer, accounts, table_factory
    ):
        accounts.add("maria@x.com")
        table = table_factory(
            self.HEADERS, [["Maria", "maria@x.com", "11987654321", "Thor"]]
        )

        await importer.run(table, classify_headers(self.HEADERS))

        assert accounts.phone_updates == []

    async def test_phone_failure_does_not_fail_row(
        self, importer, accounts, records, table_factory
    ):
        accounts.phone_failure = CollaboratorError("invalid phone number")
        table = table_factory(self.HEADERS, [["Maria", "maria@x.com", "abc", "Thor"]])

        report = await importer.run(table, classify_headers(self.HEADERS))

        assert report.success_count == 1
        assert len(records.pets) == 1


class TestProgress:
    """Test cases for progress reporting."""

    async def test_progress_after_every_row(self, importer, table_factory, mapping):
        rows = [[f"T{i}", f"t{i}@x.com", f"P{i}", ""] for i in range(4)]
        rows[1][1] = ""
        progress = []

        await importer.run(
            table_factory(HEADERS, rows), mapping, on_progress=progress.append
        )

        assert progress == [25, 50, 75, 100]

    async def test_async_progress_callback(self, importer, table_factory, mapping):
        rows = [[f"T{i}", f"t{i}@x.com", f"P{i}", ""] for i in range(3)]
        progress = []

        async def on_progress(percent):
            progress.append(percent)

        await importer.run(table_factory(HEADERS, rows), mapping, on_progress=on_progress)

        assert progress == [33, 67, 100]
        assert progress == sorted(progress)


class TestRowHelpers:
    """Test cases for the row-level helpers."""

    def test_temporary_credential_format(self):
        credential = generate_temporary_credential()

        assert re.fullmatch(r"Ampet_[a-z0-9]{8}!", credential)
        assert generate_temporary_credential() != credential

    def test_temporary_credential_prefix(self):
        assert generate_temporary_credential("Clinic_").startswith("Clinic_")

    async def test_credential_passed_to_account_creation(
        self, accounts, records, table_factory, mapping
    ):
        importer = RowImporter(
            accounts, records, ImportSettings(credential_prefix="Vida_")
        )
        table = table_factory(HEADERS, [["Maria", "maria@x.com", "Thor", ""]])

        await importer.run(table, mapping)

        assert re.fullmatch(
            r"Vida_[a-z0-9]{8}!", accounts.create_calls[0]["temporary_credential"]
        )

    def test_extract_row_unmapped_fields_are_empty(self):
        mapping = FieldMapping(
            {
                DomainField.TUTOR_NAME: "Nome",
                DomainField.TUTOR_EMAIL: "Email",
                DomainField.PET_NAME: "Pet",
            }
        )

        values = extract_row(
            ("  Maria   Silva ", "MARIA@X.COM", "Thor"), mapping, ("Nome", "Email", "Pet")
        )

        assert values.tutor_name == "Maria Silva"
        assert values.tutor_email == "maria@x.com"
        assert values.pet_breed == ""
        assert values.has_required

    def test_idempotency_key_is_stable(self):
        mapping = classify_headers(HEADERS)
        tutor_id = uuid.uuid4()
        first = extract_row(("Maria", "maria@x.com", "Thor", "Gato"), mapping, HEADERS)
        again = extract_row(("Maria", "maria@x.com", " thor ", "felino"), mapping, HEADERS)
        other = extract_row(("Maria", "maria@x.com", "Mel", "Gato"), mapping, HEADERS)

        key = build_idempotency_key(tutor_id, first)
        assert len(key) == 64
        assert build_idempotency_key(tutor_id, again) == key
        assert build_idempotency_key(tutor_id, other) != key
        assert build_idempotency_key(uuid.uuid4(), first) != key

    async def test_idempotency_key_sent_with_pet(
        self, importer, accounts, records, table_factory, mapping
    ):
        table = table_factory(HEADERS, [["Maria", "maria@x.com", "Thor", "Gato"]])

        await importer.run(table, mapping)

        call = records.calls[0]
        assert call["idempotency_key"] == build_idempotency_key(
            accounts.accounts["maria@x.com"].id,
            extract_row(table.rows[0], mapping, HEADERS),
        )

    async def test_optional_pet_details_forwarded_as_text(
        self, importer, records, table_factory
    ):
        headers = ("Tutor", "Email", "Pet", "Nascimento", "Peso", "RGA", "Obs")
        table = table_factory(
            headers,
            [["Maria", "maria@x.com", "Thor", "10/05/2020", "12,5", "RGA-991", " Alergico "]],
        )

        await importer.run(table, classify_headers(headers))

        call = records.calls[0]
        assert call["birth_date"] == "10/05/2020"
        assert call["weight"] == "12,5"
        assert call["rga_id"] == "RGA-991"
        assert call["notes"] == "Alergico"

    async def test_unmapped_pet_details_are_none(
        self, importer, records, table_factory, mapping
    ):
        table = table_factory(HEADERS, [["Maria", "maria@x.com", "Thor", "Gato"]])

        await importer.run(table, mapping)

        call = records.calls[0]
        assert [call[k] for k in ("birth_date", "weight", "rga_id", "notes")] == [
            None,
            None,
            None,
            None,
        ]
