"""
Data structures for the CSV bulk-import pipeline.

The pipeline turns an uploaded spreadsheet into a ``ParsedTable``, guesses a
``FieldMapping`` from its headers, lets the user adjust it, and then records
one ``ImportOutcome`` per data row. The outcomes are summarized in an
``ImportReport``.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

# Value the mapping UI sends for "do not map this field"
IGNORE = "__none__"


class DomainField(str, enum.Enum):
    """Target attributes a spreadsheet column can be mapped onto."""

    TUTOR_NAME = "tutor_name"
    TUTOR_EMAIL = "tutor_email"
    TUTOR_PHONE = "tutor_phone"
    PET_NAME = "pet_name"
    PET_SPECIES = "pet_species"
    PET_BREED = "pet_breed"
    MICROCHIP_ID = "microchip_id"
    PET_BIRTH_DATE = "pet_birth_date"
    PET_WEIGHT = "pet_weight"
    RGA_ID = "rga_id"
    NOTES = "notes"

    @property
    def label(self) -> str:
        return FIELD_LABELS[self]


FIELD_LABELS: Dict[DomainField, str] = {
    DomainField.TUTOR_NAME: "Tutor name",
    DomainField.TUTOR_EMAIL: "Tutor email",
    DomainField.TUTOR_PHONE: "Phone",
    DomainField.PET_NAME: "Pet name",
    DomainField.PET_SPECIES: "Species",
    DomainField.PET_BREED: "Breed",
    DomainField.MICROCHIP_ID: "Microchip",
    DomainField.PET_BIRTH_DATE: "Birth date",
    DomainField.PET_WEIGHT: "Weight (kg)",
    DomainField.RGA_ID: "RGA",
    DomainField.NOTES: "Notes",
}

REQUIRED_FIELDS: FrozenSet[DomainField] = frozenset(
    {DomainField.TUTOR_NAME, DomainField.TUTOR_EMAIL, DomainField.PET_NAME}
)


@dataclass(frozen=True)
class ParsedTable:
    """
    Header row plus data rows of an uploaded file.

    Every row has exactly ``len(headers)`` cells; the parser pads short rows
    with empty strings.
    """

    headers: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]

    def __post_init__(self) -> None:
        width = len(self.headers)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {index + 2} has {len(row)} cells, expected {width}"
                )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def preview(self, n: int = 5) -> List[Tuple[str, ...]]:
        """First ``n`` data rows, for the preview step."""
        return list(self.rows[:n])


class FieldMapping:
    """
    Assignment of domain fields to source column names.

    Unmapped fields hold ``None``. The same column may be assigned to more
    than one field. Once frozen (the user moved past the mapping step),
    edits raise ``RuntimeError``.
    """

    def __init__(self, assignments: Optional[Mapping[Any, Optional[str]]] = None):
        self._columns: Dict[DomainField, Optional[str]] = {f: None for f in DomainField}
        self._frozen = False
        for key, column in (assignments or {}).items():
            self.set(DomainField(key), column)

    def get(self, domain_field: DomainField) -> Optional[str]:
        return self._columns[DomainField(domain_field)]

    def set(self, domain_field: DomainField, column: Optional[str]) -> None:
        """Assign ``column`` to ``domain_field``; empty or IGNORE unmaps it."""
        if self._frozen:
            raise RuntimeError("Mapping is frozen and can no longer be edited")
        if column is not None:
            column = column.strip()
            if not column or column == IGNORE:
                column = None
        self._columns[DomainField(domain_field)] = column

    def freeze(self) -> "FieldMapping":
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "FieldMapping":
        """Editable copy of this mapping."""
        return FieldMapping(self._columns)

    def is_mapped(self, domain_field: DomainField) -> bool:
        return self.get(domain_field) is not None

    def mapped_fields(self) -> List[DomainField]:
        return [f for f in DomainField if self._columns[f] is not None]

    def column_index(
        self, domain_field: DomainField, headers: Sequence[str]
    ) -> Optional[int]:
        """Position of the mapped column in ``headers``; first match wins."""
        column = self.get(domain_field)
        if column is None:
            return None
        for index, header in enumerate(headers):
            if header == column:
                return index
        return None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {f.value: self._columns[f] for f in DomainField}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldMapping):
            return NotImplemented
        return self._columns == other._columns

    def __repr__(self) -> str:
        mapped = {f.value: c for f, c in self._columns.items() if c is not None}
        return f"<FieldMapping({mapped}, frozen={self._frozen})>"


@dataclass(frozen=True)
class ImportOutcome:
    """Result of importing one data row."""

    row_number: int  # 1-based line in the file, header is line 1
    success: bool
    failure_reason: Optional[str] = None

    @classmethod
    def ok(cls, row_number: int) -> "ImportOutcome":
        return cls(row_number=row_number, success=True)

    @classmethod
    def failed(cls, row_number: int, reason: str) -> "ImportOutcome":
        return cls(row_number=row_number, success=False, failure_reason=reason)


@dataclass(frozen=True)
class ImportReport:
    """Totals of a completed import run."""

    total_rows: int
    success_count: int
    errors: Tuple[ImportOutcome, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.success_count + len(self.errors) != self.total_rows:
            raise ValueError(
                f"Inconsistent report: {self.success_count} successes + "
                f"{len(self.errors)} errors != {self.total_rows} rows"
            )
        if any(outcome.success for outcome in self.errors):
            raise ValueError("Report errors may only contain failed outcomes")

    @property
    def failure_count(self) -> int:
        return len(self.errors)

    @property
    def all_succeeded(self) -> bool:
        return not self.errors

    def errors_only(self) -> List[ImportOutcome]:
        """Failed outcomes ordered by row number."""
        return sorted(self.errors, key=lambda outcome: outcome.row_number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "successCount": self.success_count,
            "errors": [
                {"rowNumber": o.row_number, "reason": o.failure_reason or ""}
                for o in self.errors_only()
            ],
        }

    def render_text(self) -> str:
        """Plain-text report offered as a download after the run."""
        lines = [
            f"Import finished: {self.success_count} of {self.total_rows} rows "
            f"imported, {self.failure_count} failed"
        ]
        for outcome in self.errors_only():
            lines.append(f"Row {outcome.row_number}: {outcome.failure_reason}")
        return "\n".join(lines) + "\n"
