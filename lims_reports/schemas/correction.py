"""Correction ledger schemas for request/response validation."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from lims_reports.models.enums import CorrectionStatus, Role


class CorrectionItemCreate(BaseModel):
    """One field flagged for correction."""

    field_key: str = Field(..., alias="fieldKey", min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=2000)
    old_value: Optional[Any] = Field(default=None, alias="oldValue")

    model_config = {"populate_by_name": True}

    @field_validator("field_key", "message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class CreateCorrectionsRequest(BaseModel):
    """Schema for raising a batch of corrections."""

    items: List[CorrectionItemCreate] = Field(..., min_length=1)
    target_status: Optional[str] = Field(default=None, alias="targetStatus")
    reason: Optional[str] = Field(default=None, max_length=2000)
    expected_version: Optional[int] = Field(default=None, alias="expectedVersion")

    model_config = {"populate_by_name": True}


class ResolveCorrectionRequest(BaseModel):
    """Schema for resolving one correction."""

    resolution_note: Optional[str] = Field(
        default=None, alias="resolutionNote", max_length=2000
    )

    model_config = {"populate_by_name": True}


class CorrectionItemResponse(BaseModel):
    """Correction item response schema."""

    id: int
    report_id: int
    field_key: str
    message: str
    status: CorrectionStatus
    requested_by_role: Role
    requested_by_id: Optional[int] = None
    created_at: datetime
    old_value: Optional[Any] = None
    target_status: Optional[str] = None
    batch_reason: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by_role: Optional[Role] = None
    resolved_by_id: Optional[int] = None
    resolution_note: Optional[str] = None

    model_config = {"from_attributes": True}


class CorrectionListResponse(BaseModel):
    """List of corrections on a report."""

    items: List[CorrectionItemResponse]
    total: int
    open: int
