"""Species normalization for free-text spreadsheet values."""

from typing import Optional, Tuple

from ..models.pet import PetSpecies
from ..utils.validation import normalize_key

SPECIES_KEYWORDS: Tuple[Tuple[PetSpecies, Tuple[str, ...]], ...] = (
    (PetSpecies.CAT, ("gato", "gata", "felino", "cat")),
    (PetSpecies.BIRD, ("ave", "passaro", "bird")),
)

DEFAULT_SPECIES = PetSpecies.DOG


def normalize_species(value: Optional[str]) -> PetSpecies:
    """
    Map a free-text species to ``PetSpecies``.

    Values mentioning cats or birds map to those species; anything else,
    including an empty cell, is treated as a dog.
    """
    if not value:
        return DEFAULT_SPECIES

    text = normalize_key(value)
    for species, keywords in SPECIES_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return species
    return DEFAULT_SPECIES
