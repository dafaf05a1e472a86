"""
Import report schemas.

Serialization shapes for the bulk-import flow: the column mapping a client
submits and the report it gets back.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..importer.types import DomainField, ImportReport


class ImportErrorItem(BaseModel):
    """One failed row of an import."""

    model_config = ConfigDict(populate_by_name=True)

    row_number: int = Field(..., alias="rowNumber", ge=1)
    reason: str


class ImportReportResponse(BaseModel):
    """
    Report returned to the client once an import run completes.

    Field aliases follow the camelCase shape consumed by the dashboard.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_rows: int = Field(..., alias="totalRows", ge=0)
    success_count: int = Field(..., alias="successCount", ge=0)
    errors: List[ImportErrorItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_conservation(self) -> "ImportReportResponse":
        if self.success_count + len(self.errors) != self.total_rows:
            raise ValueError("successCount + len(errors) must equal totalRows")
        return self

    @classmethod
    def from_report(cls, report: ImportReport) -> "ImportReportResponse":
        return cls.model_validate(report.to_dict())


class ColumnMappingRequest(BaseModel):
    """Column mapping submitted by the client, keyed by domain field."""

    mapping: Dict[DomainField, Optional[str]] = Field(default_factory=dict)

    @field_validator("mapping")
    @classmethod
    def blank_columns_unmapped(
        cls, v: Dict[DomainField, Optional[str]]
    ) -> Dict[DomainField, Optional[str]]:
        return {field: (column or None) for field, column in v.items()}
