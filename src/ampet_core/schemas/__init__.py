"""
Pydantic schemas for validating imported records and serializing reports.
"""

from .imports import ColumnMappingRequest, ImportErrorItem, ImportReportResponse
from .pet import PetCreate
from .profile import TutorAccountCreate

__all__ = [
    "TutorAccountCreate",
    "PetCreate",
    "ImportErrorItem",
    "ImportReportResponse",
    "ColumnMappingRequest",
]
