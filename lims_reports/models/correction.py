"""Correction ledger model: field-scoped rework requests on a report."""

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship, validates

from lims_reports.models.base import BaseModel
from lims_reports.models.enums import CorrectionStatus, Role


class CorrectionItem(BaseModel):
    """
    One requested correction on a single report field.

    Items are append-only: they are created OPEN and may only move to
    RESOLVED. They are never deleted.

    Attributes:
        report_id: Report the correction belongs to
        field_key: Form field the correction targets
        message: What needs to change
        status: OPEN or RESOLVED
        requested_by_role: Role that raised the correction
        requested_by_id: User that raised the correction
        old_value: Snapshot of the field value when the correction was raised
        target_status: Status the report was moved to with this batch, if any
        batch_reason: Reason recorded with the batch
        resolved_at: When the item was resolved
        resolved_by_role: Role that resolved the item
        resolved_by_id: User that resolved the item
        resolution_note: Free text left by the resolver
    """

    __tablename__ = "report_corrections"

    report_id = Column(Integer, ForeignKey("reports.id"), nullable=False)
    field_key = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(
        Enum(CorrectionStatus), nullable=False, default=CorrectionStatus.OPEN
    )
    requested_by_role = Column(Enum(Role), nullable=False)
    requested_by_id = Column(Integer, nullable=True)
    old_value = Column(JSON, nullable=True)
    target_status = Column(String(64), nullable=True)
    batch_reason = Column(Text, nullable=True)

    resolved_at = Column(DateTime, nullable=True)
    resolved_by_role = Column(Enum(Role), nullable=True)
    resolved_by_id = Column(Integer, nullable=True)
    resolution_note = Column(Text, nullable=True)

    report = relationship("Report", back_populates="corrections")

    __table_args__ = (
        Index("idx_correction_report", "report_id"),
        Index("idx_correction_report_status", "report_id", "status"),
    )

    @validates("field_key")
    def validate_field_key(self, key, value):
        """Validate field key is not empty."""
        if not value or not value.strip():
            raise ValueError("Correction field key cannot be empty")
        return value.strip()

    @validates("message")
    def validate_message(self, key, value):
        """Validate message is not empty."""
        if not value or not value.strip():
            raise ValueError("Correction message cannot be empty")
        return value.strip()

    @property
    def is_open(self):
        return self.status == CorrectionStatus.OPEN

    def __repr__(self):
        return (
            f"<CorrectionItem(id={self.id}, report_id={self.report_id}, "
            f"field='{self.field_key}', status='{self.status.value}')>"
        )
