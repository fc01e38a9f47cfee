"""Report model holding the mutable form values of one lab report."""

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import relationship, validates

from lims_reports.models.base import BaseModel
from lims_reports.models.enums import FormType


class Report(BaseModel):
    """
    Lab test report moving through the status workflow.

    Attributes:
        form_type: Which report form this is (decides status family and fields)
        client_code: Short client code used in the form number
        form_number: Client-facing form number (e.g., "ACME-20260001")
        report_number: Lab report number, assigned when testing first starts
        status: Current workflow status (value of the form's status enum)
        version: Optimistic concurrency counter, bumped on every write
        field_values: Form field values keyed by field key
        locked_at: When the report reached LOCKED
        created_by_id: User who created the draft
        updated_by_id: User who made the last change
    """

    __tablename__ = "reports"

    form_type = Column(Enum(FormType), nullable=False)
    client_code = Column(String(20), nullable=False)
    form_number = Column(String(50), unique=True, nullable=False)
    report_number = Column(String(50), unique=True, nullable=True)
    status = Column(String(64), nullable=False, default="DRAFT")
    version = Column(Integer, nullable=False, default=0)
    # Always reassign a new dict; in-place mutation is not tracked.
    field_values = Column(JSON, nullable=False, default=dict)
    locked_at = Column(DateTime, nullable=True)
    created_by_id = Column(Integer, nullable=True)
    updated_by_id = Column(Integer, nullable=True)

    corrections = relationship(
        "CorrectionItem",
        back_populates="report",
        order_by="CorrectionItem.id",
    )

    __table_args__ = (
        Index("idx_report_status", "status"),
        Index("idx_report_client", "client_code"),
        Index("idx_report_form_type", "form_type"),
    )

    @validates("client_code")
    def validate_client_code(self, key, value):
        """Validate client code is not empty."""
        if not value or not value.strip():
            raise ValueError("Client code cannot be empty")
        return value.strip().upper()

    def __repr__(self):
        return (
            f"<Report(id={self.id}, form='{self.form_number}', "
            f"type='{getattr(self.form_type, 'value', self.form_type)}', "
            f"status='{self.status}', version={self.version})>"
        )
