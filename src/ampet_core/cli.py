"""
Command-line entry point for bulk-importing a clinic's patient roster.

Usage:
    ampet-import pacientes.csv --vet-id 6f1c... --database-url sqlite:///ampet.db
    ampet-import pacientes.csv --vet-id 6f1c... --map pet_name=Animal --dry-run

Exit codes: 0 when every row was imported, 1 when some rows failed,
2 when the file or the mapping was rejected before any row was processed.
"""

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from .database import DatabaseConfig, SessionManager, close_engine, create_engine
from .exceptions import ConfigurationException, MappingIncompleteError, ParseError
from .importer import (
    FIELD_LABELS,
    DomainField,
    ImportReporter,
    ImportWizard,
    RowImporter,
)
from .importer.sql import SqlAccountDirectory, SqlRecordStore
from .models import Base
from .schemas.imports import ColumnMappingRequest
from .utils.config import EnvironmentConfig, ImportSettings, LoggingConfigurator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ROWS_FAILED = 1
EXIT_REJECTED = 2


def parse_mapping_overrides(values: Sequence[str]) -> Dict[DomainField, Optional[str]]:
    """
    Parse ``field=Column`` pairs given with ``--map``.

    An empty column (``field=``) unmaps the field.

    Raises:
        ValueError: If a pair is malformed or names an unknown field
    """
    raw: Dict[str, Optional[str]] = {}
    for value in values:
        field, sep, column = value.partition("=")
        if not sep or not field.strip():
            raise ValueError(f"Expected field=Column, got '{value}'")
        raw[field.strip()] = column.strip()

    try:
        return ColumnMappingRequest(mapping=raw).mapping
    except ValidationError as e:
        fields = ", ".join(f.value for f in DomainField)
        raise ValueError(f"Unknown field in --map (expected one of: {fields})") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ampet-import",
        description="Import tutors and pets from a CSV spreadsheet",
    )
    parser.add_argument("file", type=Path, help="CSV file to import")
    parser.add_argument(
        "--vet-id",
        type=uuid.UUID,
        required=True,
        help="Profile id of the veterinarian running the import",
    )
    parser.add_argument(
        "--database-url",
        help="Database URL (defaults to the DATABASE_URL environment variable)",
    )
    parser.add_argument(
        "--map",
        "-m",
        action="append",
        default=[],
        metavar="FIELD=COLUMN",
        help="Override the guessed column of a field; repeatable",
    )
    parser.add_argument(
        "--report-file",
        type=Path,
        help="Write the plain-text report to this path",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the mapping and a preview without importing",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before importing (local databases)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def print_mapping(wizard: ImportWizard) -> None:
    print(f"Columns in {wizard.filename}: {', '.join(wizard.table.headers)}")
    for domain_field in DomainField:
        column = wizard.mapping.get(domain_field) or "(not mapped)"
        print(f"  {FIELD_LABELS[domain_field]:<12} <- {column}")


def print_preview(wizard: ImportWizard) -> None:
    headers, rows = wizard.preview()
    print(f"Preview ({len(rows)} of {wizard.table.row_count} rows):")
    print("  " + " | ".join(headers))
    for row in rows:
        print("  " + " | ".join(row))


async def run_import(
    wizard: ImportWizard, database_url: str, vet_id: uuid.UUID, create_tables: bool
) -> int:
    engine = create_engine(
        database_url, echo=EnvironmentConfig.get_bool("AMPET_DB_ECHO", False)
    )
    try:
        sessions = SessionManager(engine)
        if create_tables and not await sessions.initialize_database(Base.metadata):
            print("Could not prepare the database", file=sys.stderr)
            return EXIT_REJECTED

        importer = RowImporter(
            SqlAccountDirectory(sessions), SqlRecordStore(sessions), wizard.settings
        )
        report = await wizard.run_import(importer, vet_id)
    finally:
        await close_engine(engine)

    print(report.render_text(), end="")
    return EXIT_OK if report.all_succeeded else EXIT_ROWS_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    """Run the ``ampet-import`` command and return its exit code."""
    args = build_parser().parse_args(argv)
    LoggingConfigurator.configure_basic_logging(level=args.log_level)

    try:
        settings = ImportSettings.from_environment()
        wizard = ImportWizard(settings)
        wizard.load_file(args.file.name, args.file.read_bytes())

        for domain_field, column in parse_mapping_overrides(args.map).items():
            wizard.update_mapping(domain_field, column)
        print_mapping(wizard)
        wizard.confirm_mapping()
    except OSError as e:
        print(f"Could not read {args.file}: {e}", file=sys.stderr)
        return EXIT_REJECTED
    except ParseError as e:
        print(f"File rejected: {e.message}", file=sys.stderr)
        return EXIT_REJECTED
    except MappingIncompleteError as e:
        labels = ", ".join(FIELD_LABELS[DomainField(f)] for f in e.missing_fields)
        print(f"Map a column for: {labels}", file=sys.stderr)
        return EXIT_REJECTED
    except ConfigurationException as e:
        print(f"Invalid configuration: {e.message}", file=sys.stderr)
        return EXIT_REJECTED
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_REJECTED

    if args.dry_run:
        print_preview(wizard)
        return EXIT_OK

    database_url = args.database_url or EnvironmentConfig.get_str("DATABASE_URL")
    if not database_url:
        print(
            "No database URL: pass --database-url or set DATABASE_URL",
            file=sys.stderr,
        )
        return EXIT_REJECTED
    try:
        DatabaseConfig(database_url)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_REJECTED

    exit_code = asyncio.run(
        run_import(wizard, database_url, args.vet_id, args.create_tables)
    )
    if args.report_file and wizard.report is not None:
        ImportReporter.write_text(wizard.report, args.report_file)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
