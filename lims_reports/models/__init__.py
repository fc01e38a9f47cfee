"""Database models for the report lifecycle engine."""

from lims_reports.models.base import BaseModel
from lims_reports.models.enums import (
    AuditAction,
    ChemistryReportStatus,
    CorrectionStatus,
    FormType,
    MicroPhase,
    MicroReportStatus,
    ReportFamily,
    ReportStatus,
    Role,
)
from lims_reports.models.report import Report
from lims_reports.models.correction import CorrectionItem
from lims_reports.models.audit import AuditLog
from lims_reports.models.sequence import NumberSequence

__all__ = [
    "BaseModel",
    "Report",
    "CorrectionItem",
    "AuditLog",
    "NumberSequence",
    "AuditAction",
    "ChemistryReportStatus",
    "CorrectionStatus",
    "FormType",
    "MicroPhase",
    "MicroReportStatus",
    "ReportFamily",
    "ReportStatus",
    "Role",
]
