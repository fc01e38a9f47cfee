"""Services for the report lifecycle engine."""

from .base import BaseService
from .sequence_service import SequenceService, sequence_service
from .report_service import FieldUpdateResult, ReportService, report_service
from .correction_service import CorrectionService, correction_service

__all__ = [
    "BaseService",
    "SequenceService",
    "sequence_service",
    "ReportService",
    "FieldUpdateResult",
    "report_service",
    "CorrectionService",
    "correction_service",
]
