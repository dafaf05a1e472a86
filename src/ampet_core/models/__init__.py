"""
Database models for the ampet core package.

This module contains SQLAlchemy models for the records written by the
bulk-import pipeline.
"""

# Base model will be imported by all other models
from .base import Base, BaseModel
from .pet import Pet, PetSpecies
from .profile import Profile, ProfileStatus, UserRole

__all__ = [
    "Base",
    "BaseModel",
    "Profile",
    "ProfileStatus",
    "UserRole",
    "Pet",
    "PetSpecies",
]
