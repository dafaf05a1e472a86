"""Aggregation of per-row outcomes into an import report."""

import logging
from pathlib import Path
from typing import Iterable, Union

from .types import ImportOutcome, ImportReport

logger = logging.getLogger(__name__)


class ImportReporter:
    """Builds and exports ``ImportReport`` objects."""

    @staticmethod
    def build(outcomes: Iterable[ImportOutcome]) -> ImportReport:
        """
        Summarize outcomes in the order they were recorded.

        Args:
            outcomes: One outcome per processed row

        Returns:
            ImportReport whose errors are the failed outcomes by row number
        """
        outcomes = list(outcomes)
        errors = tuple(
            sorted(
                (o for o in outcomes if not o.success),
                key=lambda outcome: outcome.row_number,
            )
        )
        return ImportReport(
            total_rows=len(outcomes),
            success_count=sum(1 for o in outcomes if o.success),
            errors=errors,
        )

    @staticmethod
    def write_text(report: ImportReport, path: Union[str, Path]) -> Path:
        """Write the plain-text rendering of ``report`` to ``path``."""
        path = Path(path)
        path.write_text(report.render_text(), encoding="utf-8")
        logger.info(f"Import report written to {path}")
        return path
