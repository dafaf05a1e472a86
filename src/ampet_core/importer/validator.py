"""Gate that decides whether a column mapping is complete enough to import."""

from collections import defaultdict
from typing import AbstractSet, Dict, List

from .types import REQUIRED_FIELDS, DomainField, FieldMapping


def missing_required_fields(
    mapping: FieldMapping, required: AbstractSet[DomainField] = REQUIRED_FIELDS
) -> List[DomainField]:
    """Required fields without a column, in ``DomainField`` order."""
    return [f for f in DomainField if f in required and not mapping.is_mapped(f)]


def can_proceed(
    mapping: FieldMapping, required: AbstractSet[DomainField] = REQUIRED_FIELDS
) -> bool:
    """True when every required field is mapped to a column."""
    return not missing_required_fields(mapping, required)


def duplicate_columns(mapping: FieldMapping) -> Dict[str, List[DomainField]]:
    """
    Columns assigned to more than one field.

    Informational only; a mapping that reuses a column can still proceed.
    """
    fields_by_column: Dict[str, List[DomainField]] = defaultdict(list)
    for domain_field in mapping.mapped_fields():
        fields_by_column[mapping.get(domain_field)].append(domain_field)
    return {
        column: fields for column, fields in fields_by_column.items() if len(fields) > 1
    }
