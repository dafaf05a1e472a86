"""
CSV bulk import of tutors and pets.

The pipeline reads an uploaded spreadsheet, guesses which column holds each
field, lets the user correct that mapping, imports every row through the
account and record collaborators, and reports per-row failures.

Database-backed collaborators live in ``ampet_core.importer.sql``.
"""

from .types import (
    FIELD_LABELS,
    IGNORE,
    REQUIRED_FIELDS,
    DomainField,
    FieldMapping,
    ImportOutcome,
    ImportReport,
    ParsedTable,
)
from .parser import (
    check_upload,
    decode_content,
    detect_delimiter,
    parse_table,
    read_upload,
)
from .classifier import (
    HEADER_PATTERNS,
    classify_headers,
    mapped_columns_count,
    normalize_header,
)
from .validator import can_proceed, duplicate_columns, missing_required_fields
from .species import normalize_species
from .collaborators import Account, AccountDirectory, PetRecord, RecordStore
from .reporter import ImportReporter
from .importer import (
    MISSING_REQUIRED_REASON,
    RowImporter,
    RowValues,
    build_idempotency_key,
    extract_row,
    generate_temporary_credential,
)
from .wizard import ImportWizard, WizardState

__all__ = [
    # Data structures
    "DomainField",
    "FIELD_LABELS",
    "IGNORE",
    "REQUIRED_FIELDS",
    "FieldMapping",
    "ParsedTable",
    "ImportOutcome",
    "ImportReport",
    # Parsing
    "check_upload",
    "decode_content",
    "detect_delimiter",
    "parse_table",
    "read_upload",
    # Mapping
    "HEADER_PATTERNS",
    "classify_headers",
    "mapped_columns_count",
    "normalize_header",
    "can_proceed",
    "duplicate_columns",
    "missing_required_fields",
    # Row import
    "normalize_species",
    "Account",
    "AccountDirectory",
    "PetRecord",
    "RecordStore",
    "MISSING_REQUIRED_REASON",
    "RowImporter",
    "RowValues",
    "build_idempotency_key",
    "extract_row",
    "generate_temporary_credential",
    # Reporting and workflow
    "ImportReporter",
    "ImportWizard",
    "WizardState",
]
