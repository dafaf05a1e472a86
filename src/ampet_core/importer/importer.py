"""
Row importer for the CSV bulk-import pipeline.

For every data row the importer finds or creates the tutor account and then
creates the pet record. Rows are processed one after another: two rows with
the same new tutor email must see each other's account, so the lookup for a
row only starts after the previous row has finished.

A row that fails is recorded with its reason and never stops the run.
Nothing is rolled back; rows that succeeded before a failure stay imported.

Example:
    >>> importer = RowImporter(SqlAccountDirectory(sm), SqlRecordStore(sm))
    >>> report = await importer.run(table, mapping, importer_id=vet.id)
    >>> report.success_count
    42
"""

import hashlib
import inspect
import logging
import secrets
import string
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from ..exceptions import CollaboratorError
from ..models.profile import UserRole
from ..utils.config import ImportSettings
from ..utils.validation import normalize_email, normalize_key, sanitize_string
from .collaborators import AccountDirectory, RecordStore
from .reporter import ImportReporter
from .species import normalize_species
from .types import DomainField, FieldMapping, ImportOutcome, ImportReport, ParsedTable

logger = logging.getLogger(__name__)

MISSING_REQUIRED_REASON = "missing required field"
UNKNOWN_ERROR_REASON = "unknown error"

CREDENTIAL_ALPHABET = string.ascii_lowercase + string.digits
CREDENTIAL_RANDOM_LENGTH = 8

ProgressCallback = Callable[[int], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class RowValues:
    """Cell values of one row, picked out through the mapping."""

    tutor_name: str
    tutor_email: str
    tutor_phone: str
    pet_name: str
    pet_species: str
    pet_breed: str
    microchip_id: str
    birth_date: str = ""
    weight: str = ""
    rga_id: str = ""
    notes: str = ""

    @property
    def has_required(self) -> bool:
        return bool(self.tutor_name and self.tutor_email and self.pet_name)


def generate_temporary_credential(prefix: str = "Ampet_") -> str:
    """One-time password handed to a newly created tutor account."""
    body = "".join(
        secrets.choice(CREDENTIAL_ALPHABET) for _ in range(CREDENTIAL_RANDOM_LENGTH)
    )
    return f"{prefix}{body}!"


def build_idempotency_key(tutor_id: uuid.UUID, values: RowValues) -> str:
    """SHA-256 of the tutor id and the normalized pet values of a row."""
    parts = [
        str(tutor_id),
        normalize_key(values.pet_name),
        normalize_species(values.pet_species).value,
        normalize_key(values.pet_breed),
        values.microchip_id.strip(),
    ]
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


def extract_row(
    row: Sequence[str], mapping: FieldMapping, headers: Sequence[str]
) -> RowValues:
    """Pick the mapped cells out of ``row``; unmapped fields read as empty."""

    def cell(domain_field: DomainField) -> str:
        index = mapping.column_index(domain_field, headers)
        if index is None or index >= len(row):
            return ""
        return row[index].strip()

    return RowValues(
        tutor_name=sanitize_string(cell(DomainField.TUTOR_NAME)),
        tutor_email=normalize_email(cell(DomainField.TUTOR_EMAIL)),
        tutor_phone=cell(DomainField.TUTOR_PHONE),
        pet_name=sanitize_string(cell(DomainField.PET_NAME)),
        pet_species=cell(DomainField.PET_SPECIES),
        pet_breed=cell(DomainField.PET_BREED),
        microchip_id=cell(DomainField.MICROCHIP_ID),
        birth_date=cell(DomainField.PET_BIRTH_DATE),
        weight=cell(DomainField.PET_WEIGHT),
        rga_id=cell(DomainField.RGA_ID),
        notes=cell(DomainField.NOTES),
    )


class RowImporter:
    """
    Imports parsed rows through the account and record collaborators.

    Args:
        accounts: Tutor account lookup and creation
        records: Pet record creation
        settings: Import settings (provenance tag, credential prefix)
    """

    def __init__(
        self,
        accounts: AccountDirectory,
        records: RecordStore,
        settings: Optional[ImportSettings] = None,
    ):
        self.accounts = accounts
        self.records = records
        self.settings = settings or ImportSettings()

    async def run(
        self,
        table: ParsedTable,
        mapping: FieldMapping,
        importer_id: Optional[uuid.UUID] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportReport:
        """Import every row of ``table`` and summarize the outcomes."""
        outcomes = await self.import_rows(table, mapping, importer_id, on_progress)
        report = ImportReporter.build(outcomes)
        logger.info(
            f"Import finished: {report.success_count}/{report.total_rows} rows "
            f"imported, {report.failure_count} failed"
        )
        return report

    async def import_rows(
        self,
        table: ParsedTable,
        mapping: FieldMapping,
        importer_id: Optional[uuid.UUID] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[ImportOutcome]:
        """
        Import rows sequentially and return one outcome per row.

        Row numbers count the header as line 1, so the first data row is 2.
        """
        total = table.row_count
        outcomes: List[ImportOutcome] = []
        logger.info(
            f"Starting import of {total} rows"
            + (f" for {importer_id}" if importer_id else "")
        )

        for i, row in enumerate(table.rows):
            row_number = i + 2
            outcome = await self.import_row(
                row_number, row, mapping, table.headers, importer_id
            )
            if not outcome.success:
                logger.warning(f"Row {row_number} failed: {outcome.failure_reason}")
            outcomes.append(outcome)

            if on_progress is not None:
                result = on_progress(round((i + 1) / total * 100))
                if inspect.isawaitable(result):
                    await result

        return outcomes

    async def import_row(
        self,
        row_number: int,
        row: Sequence[str],
        mapping: FieldMapping,
        headers: Sequence[str],
        importer_id: Optional[uuid.UUID] = None,
    ) -> ImportOutcome:
        """Import a single row; collaborator failures become a failed outcome."""
        values = extract_row(row, mapping, headers)
        if not values.has_required:
            return ImportOutcome.failed(row_number, MISSING_REQUIRED_REASON)

        try:
            tutor_id = await self._resolve_tutor(values, importer_id)
            await self.records.create_pet(
                tutor_id,
                values.pet_name,
                normalize_species(values.pet_species),
                values.pet_breed or None,
                values.microchip_id or None,
                self.settings.provenance_tag,
                idempotency_key=build_idempotency_key(tutor_id, values),
                created_by=importer_id,
                birth_date=values.birth_date or None,
                weight=values.weight or None,
                rga_id=values.rga_id or None,
                notes=values.notes or None,
            )
        except CollaboratorError as e:
            return ImportOutcome.failed(row_number, e.reason or UNKNOWN_ERROR_REASON)
        except Exception as e:
            logger.debug(f"Unexpected error on row {row_number}", exc_info=True)
            return ImportOutcome.failed(row_number, str(e) or UNKNOWN_ERROR_REASON)

        return ImportOutcome.ok(row_number)

    async def _resolve_tutor(
        self, values: RowValues, importer_id: Optional[uuid.UUID]
    ) -> uuid.UUID:
        existing = await self.accounts.find_account_by_contact(values.tutor_email)
        if existing is not None:
            return existing.id

        account = await self.accounts.create_account(
            values.tutor_email,
            values.tutor_name,
            generate_temporary_credential(self.settings.credential_prefix),
            role=UserRole.TUTOR,
            invited_by=importer_id,
        )
        logger.info(f"Created tutor account {account.id} for imported row")

        if values.tutor_phone:
            await self._update_phone(account.id, values.tutor_phone)

        return account.id

    async def _update_phone(self, account_id: uuid.UUID, phone: str) -> None:
        # Best-effort: the account stays created when this fails.
        try:
            await self.accounts.update_account_phone(account_id, phone)
        except Exception as e:
            logger.warning(f"Could not set phone for account {account_id}: {e}")


__all__ = [
    "MISSING_REQUIRED_REASON",
    "RowImporter",
    "RowValues",
    "build_idempotency_key",
    "extract_row",
    "generate_temporary_credential",
]
