"""
Ampet Core Package

Shared data models, database utilities and the CSV bulk-import pipeline for
the Ampet pet-health platform.

Veterinary clinics onboard their existing patient rosters by uploading a
spreadsheet. This package turns that spreadsheet into tutor profiles and pet
records. It includes:

- SQLAlchemy models for tutor/veterinarian profiles and pets
- Pydantic schemas for request/response validation and serialization
- Database connection utilities with async SQLAlchemy engine configuration
- The import pipeline: parsing, header auto-mapping, row import and reporting
- Exception hierarchy with retry helpers for database operations
- Migration support through Alembic integration

Quick Start:
    >>> from ampet_core.database import create_engine, SessionManager
    >>> from ampet_core.importer import ImportWizard, RowImporter
    >>> from ampet_core.importer.sql import SqlAccountDirectory, SqlRecordStore

    >>> sessions = SessionManager(create_engine("postgresql://localhost/ampet"))
    >>> wizard = ImportWizard()
    >>> wizard.load_file("pacientes.csv", data)
    >>> wizard.confirm_mapping()
    >>> importer = RowImporter(
    ...     SqlAccountDirectory(sessions), SqlRecordStore(sessions)
    ... )
    >>> report = await wizard.run_import(importer, vet.id)

Requirements:
    - Python 3.11+
    - PostgreSQL 13+ (SQLite for tests and local runs)
    - SQLAlchemy 2.0+
    - Pydantic 2.5+
"""

__version__ = "0.1.0"
__author__ = "Ampet Platform Team"
__license__ = "MIT"

# Import implemented modules
from . import database
from . import exceptions
from . import importer
from . import models
from . import schemas
from . import utils

# Convenience imports for common usage patterns
from .database import SessionManager, create_engine
from .exceptions import AmpetCoreException, DatabaseException, ValidationException
from .importer import ImportReport, ImportWizard, RowImporter, parse_table
from .models import Pet, Profile

__all__ = [
    # Version and metadata
    "__version__",
    "__author__",
    "__license__",
    # Core modules
    "database",
    "exceptions",
    "importer",
    "models",
    "schemas",
    "utils",
    # Convenience imports
    "SessionManager",
    "create_engine",
    "AmpetCoreException",
    "ValidationException",
    "DatabaseException",
    "ImportReport",
    "ImportWizard",
    "RowImporter",
    "parse_table",
    "Profile",
    "Pet",
]
