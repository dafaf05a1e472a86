"""
Tests for the mapping validator.
"""

from ampet_core.importer import (
    REQUIRED_FIELDS,
    DomainField,
    FieldMapping,
    can_proceed,
    duplicate_columns,
    missing_required_fields,
)


def required_only() -> FieldMapping:
    return FieldMapping(
        {
            DomainField.TUTOR_NAME: "Nome",
            DomainField.TUTOR_EMAIL: "Email",
            DomainField.PET_NAME: "Pet",
        }
    )


class TestCanProceed:
    """Test cases for can_proceed and missing_required_fields."""

    def test_required_set(self):
        assert REQUIRED_FIELDS == {
            DomainField.TUTOR_NAME,
            DomainField.TUTOR_EMAIL,
            DomainField.PET_NAME,
        }

    def test_required_fields_mapped(self):
        assert can_proceed(required_only())
        assert missing_required_fields(required_only()) == []

    def test_empty_mapping_lists_all_required(self):
        mapping = FieldMapping()

        assert not can_proceed(mapping)
        assert missing_required_fields(mapping) == [
            DomainField.TUTOR_NAME,
            DomainField.TUTOR_EMAIL,
            DomainField.PET_NAME,
        ]

    def test_adding_optional_fields_keeps_mapping_valid(self):
        mapping = required_only()
        for domain_field, column in [
            (DomainField.TUTOR_PHONE, "Telefone"),
            (DomainField.PET_SPECIES, "Especie"),
            (DomainField.PET_BREED, "Raca"),
            (DomainField.MICROCHIP_ID, "Chip"),
        ]:
            mapping.set(domain_field, column)
            assert can_proceed(mapping)

    def test_removing_any_required_field_blocks(self):
        for domain_field in REQUIRED_FIELDS:
            mapping = required_only()
            mapping.set(domain_field, None)

            assert not can_proceed(mapping)
            assert missing_required_fields(mapping) == [domain_field]

    def test_ignore_sentinel_counts_as_unmapped(self):
        mapping = required_only()
        mapping.set(DomainField.TUTOR_EMAIL, "__none__")

        assert not can_proceed(mapping)

    def test_custom_required_set(self):
        mapping = FieldMapping({DomainField.PET_NAME: "Pet"})

        assert can_proceed(mapping, required={DomainField.PET_NAME})


class TestDuplicateColumns:
    """Test cases for duplicate_columns."""

    def test_no_duplicates(self):
        assert duplicate_columns(required_only()) == {}

    def test_reused_column_is_reported_but_allowed(self):
        mapping = required_only()
        mapping.set(DomainField.PET_NAME, "Nome")

        assert duplicate_columns(mapping) == {
            "Nome": [DomainField.TUTOR_NAME, DomainField.PET_NAME]
        }
        assert can_proceed(mapping)
