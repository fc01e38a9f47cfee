"""Pydantic schemas for request/response validation."""

from lims_reports.schemas.correction import (
    CorrectionItemCreate,
    CorrectionItemResponse,
    CorrectionListResponse,
    CreateCorrectionsRequest,
    ResolveCorrectionRequest,
)
from lims_reports.schemas.report import (
    ActiveRow,
    FieldUpdateRequest,
    FieldUpdateResponse,
    PathogenRow,
    ReportCreate,
    ReportResponse,
    StatusChangeRequest,
    ValidationResponse,
)

__all__ = [
    # Corrections
    "CorrectionItemCreate",
    "CorrectionItemResponse",
    "CorrectionListResponse",
    "CreateCorrectionsRequest",
    "ResolveCorrectionRequest",
    # Reports
    "ActiveRow",
    "FieldUpdateRequest",
    "FieldUpdateResponse",
    "PathogenRow",
    "ReportCreate",
    "ReportResponse",
    "StatusChangeRequest",
    "ValidationResponse",
]
