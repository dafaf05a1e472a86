"""
Tests for the import data structures.
"""

import pytest

from ampet_core.importer import (
    FIELD_LABELS,
    IGNORE,
    DomainField,
    FieldMapping,
    ImportOutcome,
    ImportReport,
    ParsedTable,
)


class TestParsedTable:
    """Test cases for ParsedTable."""

    def test_rows_must_match_header_width(self):
        with pytest.raises(ValueError, match="Row 3"):
            ParsedTable(headers=("Nome", "Pet"), rows=(("Maria", "Thor"), ("Joao",)))

    def test_preview(self, table_factory):
        rows = [[f"Tutor {i}", f"Pet {i}"] for i in range(8)]
        table = table_factory(["Nome", "Pet"], rows)

        assert table.row_count == 8
        assert len(table.preview()) == 5
        assert table.preview(2) == [("Tutor 0", "Pet 0"), ("Tutor 1", "Pet 1")]


class TestFieldMapping:
    """Test cases for FieldMapping."""

    def test_defaults_to_unmapped(self):
        mapping = FieldMapping()

        assert all(mapping.get(f) is None for f in DomainField)
        assert mapping.mapped_fields() == []

    def test_accepts_string_keys(self):
        mapping = FieldMapping({"pet_name": "Animal"})

        assert mapping.get(DomainField.PET_NAME) == "Animal"
        assert mapping.is_mapped(DomainField.PET_NAME)

    def test_ignore_and_blank_unmap(self):
        mapping = FieldMapping({DomainField.PET_NAME: "Animal"})
        mapping.set(DomainField.PET_NAME, IGNORE)
        assert mapping.get(DomainField.PET_NAME) is None

        mapping.set(DomainField.PET_NAME, "   ")
        assert mapping.get(DomainField.PET_NAME) is None

    def test_frozen_mapping_rejects_edits(self):
        mapping = FieldMapping({DomainField.PET_NAME: "Animal"}).freeze()

        assert mapping.is_frozen
        with pytest.raises(RuntimeError):
            mapping.set(DomainField.PET_NAME, "Pet")

    def test_copy_is_editable(self):
        frozen = FieldMapping({DomainField.PET_NAME: "Animal"}).freeze()
        copy = frozen.copy()
        copy.set(DomainField.PET_NAME, "Pet")

        assert not copy.is_frozen
        assert frozen.get(DomainField.PET_NAME) == "Animal"

    def test_column_index_uses_first_matching_header(self):
        mapping = FieldMapping({DomainField.TUTOR_NAME: "Nome"})

        assert mapping.column_index(DomainField.TUTOR_NAME, ["Pet", "Nome", "Nome"]) == 1
        assert mapping.column_index(DomainField.PET_NAME, ["Pet"]) is None

    def test_column_index_for_missing_header(self):
        mapping = FieldMapping({DomainField.TUTOR_NAME: "Responsavel"})

        assert mapping.column_index(DomainField.TUTOR_NAME, ["Nome"]) is None

    def test_labels(self):
        assert set(FIELD_LABELS) == set(DomainField)
        assert DomainField.TUTOR_EMAIL.label == "Tutor email"


class TestImportReport:
    """Test cases for ImportReport."""

    def test_counts_must_add_up(self):
        with pytest.raises(ValueError):
            ImportReport(
                total_rows=3,
                success_count=1,
                errors=(ImportOutcome.failed(2, "unknown error"),),
            )

    def test_errors_must_be_failures(self):
        with pytest.raises(ValueError):
            ImportReport(total_rows=1, success_count=0, errors=(ImportOutcome.ok(2),))

    def test_empty_report(self):
        report = ImportReport(total_rows=0, success_count=0)

        assert report.all_succeeded
        assert report.failure_count == 0

    def test_to_dict(self):
        report = ImportReport(
            total_rows=3,
            success_count=1,
            errors=(
                ImportOutcome.failed(4, "account already exists"),
                ImportOutcome.failed(2, "missing required field"),
            ),
        )

        assert report.to_dict() == {
            "totalRows": 3,
            "successCount": 1,
            "errors": [
                {"rowNumber": 2, "reason": "missing required field"},
                {"rowNumber": 4, "reason": "account already exists"},
            ],
        }

    def test_render_text(self):
        report = ImportReport(
            total_rows=2,
            success_count=1,
            errors=(ImportOutcome.failed(3, "missing required field"),),
        )

        assert report.render_text() == (
            "Import finished: 1 of 2 rows imported, 1 failed\n"
            "Row 3: missing required field\n"
        )
