"""Report schemas for request/response validation."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from lims_reports.models.enums import FormType


class PathogenRow(BaseModel):
    """One row of the pathogen checklist."""

    key: str
    label: Optional[str] = None
    checked: bool = False
    result: Optional[str] = None  # "Absent" / "Present"
    grams: Optional[str] = None


class ActiveRow(BaseModel):
    """One active ingredient on the chemistry form."""

    key: str
    label: Optional[str] = None
    checked: bool = False
    formula_content: Optional[str] = Field(default=None, alias="formulaContent")
    sop_no: Optional[str] = Field(default=None, alias="sopNo")
    result: Optional[str] = None
    date_tested_initial: Optional[str] = Field(default=None, alias="dateTestedInitial")

    model_config = {"populate_by_name": True}


class ReportCreate(BaseModel):
    """Schema for creating a draft report."""

    form_type: FormType = Field(..., alias="formType")
    client_code: str = Field(..., alias="clientCode", min_length=1, max_length=20)
    values: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class FieldUpdateRequest(BaseModel):
    """Schema for saving form field values."""

    values: Dict[str, Any] = Field(..., min_length=1)
    expected_version: Optional[int] = Field(default=None, alias="expectedVersion")
    reason: Optional[str] = Field(default=None, max_length=2000)

    model_config = {"populate_by_name": True}


class StatusChangeRequest(BaseModel):
    """Schema for moving a report to another status."""

    status: str = Field(..., min_length=1)
    expected_version: Optional[int] = Field(default=None, alias="expectedVersion")
    reason: Optional[str] = Field(default=None, max_length=2000)

    model_config = {"populate_by_name": True}


class ReportResponse(BaseModel):
    """Report response schema."""

    id: int
    form_type: FormType
    client_code: str
    form_number: str
    report_number: Optional[str] = None
    status: str
    version: int
    field_values: Dict[str, Any] = {}
    locked_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ValidationResponse(BaseModel):
    """Outcome of a completeness check."""

    ok: bool
    errors: Dict[str, str] = {}
    first_error: Optional[str] = Field(default=None, alias="firstError")

    model_config = {"populate_by_name": True}


class FieldUpdateResponse(BaseModel):
    """Outcome of a field save."""

    report: ReportResponse
    applied: List[str]
    denied: List[str] = []
