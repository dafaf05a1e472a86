"""
Header classifier.

Guesses which spreadsheet column holds each domain field by looking for
keywords in the normalized header text. Headers from clinics are mostly in
Portuguese, so keywords cover both Portuguese and English spellings.
"""

from typing import Sequence, Tuple

from ..utils.validation import strip_accents
from .types import DomainField, FieldMapping

# Fields are tried in this order, and within a field its keywords are tried
# in order across every header before the next keyword. "Nome do Pet" and
# "Nome do Tutor" therefore give the tutor's name to the header containing
# "tutor", wherever it sits in the row.
HEADER_PATTERNS: Tuple[Tuple[DomainField, Tuple[str, ...]], ...] = (
    (
        DomainField.TUTOR_NAME,
        (
            "tutor",
            "proprietario",
            "dono",
            "responsavel",
            "cliente",
            "owner",
            "nome",
            "name",
        ),
    ),
    (DomainField.TUTOR_EMAIL, ("email", "e-mail", "mail")),
    (
        DomainField.TUTOR_PHONE,
        ("telefone", "phone", "celular", "whatsapp", "fone", "tel"),
    ),
    (DomainField.PET_NAME, ("pet", "animal", "paciente")),
    (DomainField.PET_SPECIES, ("especie", "species", "tipo")),
    (DomainField.PET_BREED, ("raca", "breed")),
    (DomainField.MICROCHIP_ID, ("microchip", "chip")),
    (DomainField.PET_BIRTH_DATE, ("nascimento", "nasc", "birth")),
    (DomainField.PET_WEIGHT, ("peso", "weight")),
    (DomainField.RGA_ID, ("rga",)),
    (DomainField.NOTES, ("observ", "obs", "notes", "nota")),
)


def normalize_header(header: str) -> str:
    """Lower-cased, accent-free, trimmed header text."""
    return strip_accents(header).lower().strip()


def classify_headers(headers: Sequence[str]) -> FieldMapping:
    """
    Build the default mapping for a header row.

    A field takes the leftmost header containing its first keyword; only
    when no header contains that keyword is the next one tried. A header
    may be chosen for more than one field. Fields with no matching header
    stay unmapped.
    """
    normalized = [normalize_header(header) for header in headers]
    mapping = FieldMapping()

    for domain_field, keywords in HEADER_PATTERNS:
        header = next(
            (
                header
                for keyword in keywords
                for header, text in zip(headers, normalized)
                if keyword in text
            ),
            None,
        )
        mapping.set(domain_field, header)

    return mapping


def mapped_columns_count(mapping: FieldMapping, headers: Sequence[str]) -> int:
    """Number of distinct headers that some field is mapped to."""
    mapped = {mapping.get(f) for f in mapping.mapped_fields()}
    return sum(1 for header in set(headers) if header in mapped)
