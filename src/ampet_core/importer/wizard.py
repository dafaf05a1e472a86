"""
Step-by-step import wizard.

Models the upload, mapping, preview, import and report steps as an explicit
state machine. Every step method checks the current state and raises
``InvalidTransitionError`` when it is called out of order.

Example:
    >>> wizard = ImportWizard()
    >>> wizard.load_file("clientes.csv", data)
    >>> wizard.update_mapping(DomainField.PET_NAME, "Animal")
    >>> wizard.confirm_mapping()
    >>> report = await wizard.run_import(importer, vet.id)
"""

import enum
import inspect
import logging
import uuid
from typing import List, Optional, Tuple, Union

from ..exceptions import InvalidTransitionError, MappingIncompleteError
from ..utils.config import ImportSettings
from .classifier import classify_headers
from .importer import ProgressCallback, RowImporter
from .parser import read_upload
from .types import IGNORE, DomainField, FieldMapping, ImportReport, ParsedTable
from .validator import can_proceed, missing_required_fields

logger = logging.getLogger(__name__)


class WizardState(str, enum.Enum):
    """Steps of the import wizard, in order."""

    UPLOADING = "uploading"
    MAPPING = "mapping"
    PREVIEWING = "previewing"
    IMPORTING = "importing"
    REPORTING = "reporting"


class ImportWizard:
    """
    State of one import session.

    Attributes:
        state: Current step
        filename: Name of the loaded file
        table: Parsed file, set from MAPPING onwards
        mapping: Column mapping, frozen from PREVIEWING onwards
        progress: Percentage of rows processed by the running import
        report: Result of the import, set in REPORTING
    """

    def __init__(self, settings: Optional[ImportSettings] = None):
        self.settings = settings or ImportSettings()
        self._clear()

    def _clear(self) -> None:
        self.state = WizardState.UPLOADING
        self.filename: Optional[str] = None
        self.table: Optional[ParsedTable] = None
        self.mapping: Optional[FieldMapping] = None
        self.progress = 0
        self.report: Optional[ImportReport] = None

    def _require(self, action: str, *states: WizardState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(self.state.value, action)

    def _move_to(self, state: WizardState) -> None:
        logger.debug(f"Import wizard: {self.state.value} -> {state.value}")
        self.state = state

    def load_file(self, filename: str, content: Union[bytes, str]) -> FieldMapping:
        """
        Read an uploaded file and guess its column mapping.

        Raises:
            InvalidTransitionError: If not in UPLOADING
            ParseError: If the upload is rejected or unreadable; the wizard
                stays in UPLOADING
        """
        self._require("load a file", WizardState.UPLOADING)

        table = read_upload(filename, content, self.settings)
        self.filename = filename
        self.table = table
        self.mapping = classify_headers(table.headers)
        logger.info(
            f"Loaded {filename}: {table.row_count} rows, "
            f"{len(self.mapping.mapped_fields())} fields auto-mapped"
        )
        self._move_to(WizardState.MAPPING)
        return self.mapping

    def update_mapping(self, domain_field: DomainField, column: Optional[str]) -> None:
        """Assign a column to a field, or unmap it with ``None``."""
        self._require("edit the mapping", WizardState.MAPPING)
        name = (column or "").strip()
        if name and name != IGNORE and name not in self.table.headers:
            raise ValueError(f"Unknown column '{name}'")
        self.mapping.set(domain_field, column)

    @property
    def can_proceed(self) -> bool:
        return self.mapping is not None and can_proceed(self.mapping)

    def missing_fields(self) -> List[DomainField]:
        if self.mapping is None:
            return []
        return missing_required_fields(self.mapping)

    def confirm_mapping(self) -> FieldMapping:
        """
        Freeze the mapping and move to the preview step.

        Raises:
            MappingIncompleteError: If a required field has no column
        """
        self._require("confirm the mapping", WizardState.MAPPING)
        missing = missing_required_fields(self.mapping)
        if missing:
            raise MappingIncompleteError([f.value for f in missing])

        self.mapping.freeze()
        self._move_to(WizardState.PREVIEWING)
        return self.mapping

    def preview(
        self, n: Optional[int] = None
    ) -> Tuple[Tuple[str, ...], List[Tuple[str, ...]]]:
        """Headers and the first rows of the file for the preview step."""
        self._require("preview", WizardState.PREVIEWING)
        rows = self.table.preview(self.settings.preview_rows if n is None else n)
        return self.table.headers, rows

    def back(self) -> WizardState:
        """Return to the previous editable step."""
        self._require("go back", WizardState.MAPPING, WizardState.PREVIEWING)
        if self.state is WizardState.PREVIEWING:
            self.mapping = self.mapping.copy()
            self._move_to(WizardState.MAPPING)
        else:
            self._clear()
        return self.state

    async def run_import(
        self,
        importer: RowImporter,
        importer_id: Optional[uuid.UUID] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportReport:
        """
        Run the import with the confirmed mapping.

        If the importer itself raises, the wizard returns to PREVIEWING and
        the error propagates.
        """
        self._require("start the import", WizardState.PREVIEWING)
        self._move_to(WizardState.IMPORTING)
        self.progress = 0

        async def track(percent: int) -> None:
            self.progress = percent
            if on_progress is not None:
                result = on_progress(percent)
                if inspect.isawaitable(result):
                    await result

        try:
            report = await importer.run(
                self.table, self.mapping, importer_id, on_progress=track
            )
        except Exception:
            self._move_to(WizardState.PREVIEWING)
            raise

        self.report = report
        self._move_to(WizardState.REPORTING)
        return report

    def reset(self) -> None:
        """Discard everything and start over with a new upload."""
        self._clear()
