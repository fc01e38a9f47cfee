"""Enum types for database models and workflow tables."""

import enum


class Role(str, enum.Enum):
    """User role enumeration."""

    SYSTEMADMIN = "SYSTEMADMIN"
    ADMIN = "ADMIN"
    FRONTDESK = "FRONTDESK"
    MICRO = "MICRO"
    CHEMISTRY = "CHEMISTRY"
    QA = "QA"
    CLIENT = "CLIENT"
    # Lab-wide aggregate used for dashboard routing only; never part of a workflow table.
    MC = "MC"

    @classmethod
    def parse(cls, value) -> "Role":
        """Coerce a role or role string (any case) to a Role."""
        if isinstance(value, cls):
            return value
        return cls(str(value or "").strip().upper())


class ReportStatus(str, enum.Enum):
    """Lifecycle statuses of the generic one-phase report form."""

    DRAFT = "DRAFT"
    SUBMITTED_BY_CLIENT = "SUBMITTED_BY_CLIENT"
    CLIENT_NEEDS_CORRECTION = "CLIENT_NEEDS_CORRECTION"
    RECEIVED_BY_FRONTDESK = "RECEIVED_BY_FRONTDESK"
    FRONTDESK_ON_HOLD = "FRONTDESK_ON_HOLD"
    FRONTDESK_NEEDS_CORRECTION = "FRONTDESK_NEEDS_CORRECTION"
    FRONTDESK_REJECTED = "FRONTDESK_REJECTED"
    UNDER_TESTING_REVIEW = "UNDER_TESTING_REVIEW"
    TESTING_ON_HOLD = "TESTING_ON_HOLD"
    TESTING_NEEDS_CORRECTION = "TESTING_NEEDS_CORRECTION"
    TESTING_REJECTED = "TESTING_REJECTED"
    UNDER_QA_REVIEW = "UNDER_QA_REVIEW"
    QA_NEEDS_CORRECTION = "QA_NEEDS_CORRECTION"
    QA_REJECTED = "QA_REJECTED"
    UNDER_ADMIN_REVIEW = "UNDER_ADMIN_REVIEW"
    ADMIN_NEEDS_CORRECTION = "ADMIN_NEEDS_CORRECTION"
    ADMIN_REJECTED = "ADMIN_REJECTED"
    APPROVED = "APPROVED"
    LOCKED = "LOCKED"


class MicroReportStatus(str, enum.Enum):
    """Lifecycle statuses of the two-phase microbiology report forms."""

    DRAFT = "DRAFT"
    SUBMITTED_BY_CLIENT = "SUBMITTED_BY_CLIENT"
    FRONTDESK_NEEDS_CORRECTION = "FRONTDESK_NEEDS_CORRECTION"

    # Preliminary pass
    UNDER_PRELIMINARY_TESTING_REVIEW = "UNDER_PRELIMINARY_TESTING_REVIEW"
    PRELIMINARY_TESTING_ON_HOLD = "PRELIMINARY_TESTING_ON_HOLD"
    PRELIMINARY_TESTING_NEEDS_CORRECTION = "PRELIMINARY_TESTING_NEEDS_CORRECTION"
    UNDER_CLIENT_PRELIMINARY_CORRECTION = "UNDER_CLIENT_PRELIMINARY_CORRECTION"
    PRELIMINARY_RESUBMISSION_BY_CLIENT = "PRELIMINARY_RESUBMISSION_BY_CLIENT"
    UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW = (
        "UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW"
    )
    PRELIMINARY_RESUBMISSION_BY_TESTING = "PRELIMINARY_RESUBMISSION_BY_TESTING"
    UNDER_QA_PRELIMINARY_REVIEW = "UNDER_QA_PRELIMINARY_REVIEW"
    QA_NEEDS_PRELIMINARY_CORRECTION = "QA_NEEDS_PRELIMINARY_CORRECTION"
    UNDER_CLIENT_PRELIMINARY_REVIEW = "UNDER_CLIENT_PRELIMINARY_REVIEW"
    CLIENT_NEEDS_PRELIMINARY_CORRECTION = "CLIENT_NEEDS_PRELIMINARY_CORRECTION"
    PRELIMINARY_APPROVED = "PRELIMINARY_APPROVED"

    # Final pass
    UNDER_FINAL_TESTING_REVIEW = "UNDER_FINAL_TESTING_REVIEW"
    FINAL_TESTING_ON_HOLD = "FINAL_TESTING_ON_HOLD"
    FINAL_TESTING_NEEDS_CORRECTION = "FINAL_TESTING_NEEDS_CORRECTION"
    UNDER_CLIENT_FINAL_CORRECTION = "UNDER_CLIENT_FINAL_CORRECTION"
    FINAL_RESUBMISSION_BY_CLIENT = "FINAL_RESUBMISSION_BY_CLIENT"
    UNDER_FINAL_RESUBMISSION_TESTING_REVIEW = "UNDER_FINAL_RESUBMISSION_TESTING_REVIEW"
    FINAL_RESUBMISSION_BY_TESTING = "FINAL_RESUBMISSION_BY_TESTING"
    UNDER_QA_FINAL_REVIEW = "UNDER_QA_FINAL_REVIEW"
    QA_NEEDS_FINAL_CORRECTION = "QA_NEEDS_FINAL_CORRECTION"
    UNDER_FINAL_RESUBMISSION_QA_REVIEW = "UNDER_FINAL_RESUBMISSION_QA_REVIEW"

    # Admin review
    UNDER_ADMIN_REVIEW = "UNDER_ADMIN_REVIEW"
    ADMIN_NEEDS_CORRECTION = "ADMIN_NEEDS_CORRECTION"
    ADMIN_REJECTED = "ADMIN_REJECTED"
    UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW = "UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW"

    # Release to client
    RECEIVED_BY_FRONTDESK = "RECEIVED_BY_FRONTDESK"
    FRONTDESK_ON_HOLD = "FRONTDESK_ON_HOLD"
    UNDER_CLIENT_FINAL_REVIEW = "UNDER_CLIENT_FINAL_REVIEW"
    CLIENT_NEEDS_FINAL_CORRECTION = "CLIENT_NEEDS_FINAL_CORRECTION"
    FINAL_APPROVED = "FINAL_APPROVED"
    LOCKED = "LOCKED"


class ChemistryReportStatus(str, enum.Enum):
    """Lifecycle statuses of the chemistry report form."""

    DRAFT = "DRAFT"
    SUBMITTED_BY_CLIENT = "SUBMITTED_BY_CLIENT"
    FRONTDESK_NEEDS_CORRECTION = "FRONTDESK_NEEDS_CORRECTION"

    # Testing
    UNDER_TESTING_REVIEW = "UNDER_TESTING_REVIEW"
    TESTING_ON_HOLD = "TESTING_ON_HOLD"
    TESTING_NEEDS_CORRECTION = "TESTING_NEEDS_CORRECTION"
    UNDER_CLIENT_CORRECTION = "UNDER_CLIENT_CORRECTION"
    RESUBMISSION_BY_CLIENT = "RESUBMISSION_BY_CLIENT"

    # Review
    UNDER_QA_REVIEW = "UNDER_QA_REVIEW"
    QA_NEEDS_CORRECTION = "QA_NEEDS_CORRECTION"
    UNDER_ADMIN_REVIEW = "UNDER_ADMIN_REVIEW"
    ADMIN_NEEDS_CORRECTION = "ADMIN_NEEDS_CORRECTION"
    ADMIN_REJECTED = "ADMIN_REJECTED"

    # Release to client
    RECEIVED_BY_FRONTDESK = "RECEIVED_BY_FRONTDESK"
    FRONTDESK_ON_HOLD = "FRONTDESK_ON_HOLD"
    UNDER_CLIENT_REVIEW = "UNDER_CLIENT_REVIEW"
    CLIENT_NEEDS_CORRECTION = "CLIENT_NEEDS_CORRECTION"
    UNDER_RESUBMISSION_TESTING_REVIEW = "UNDER_RESUBMISSION_TESTING_REVIEW"
    RESUBMISSION_BY_TESTING = "RESUBMISSION_BY_TESTING"
    UNDER_RESUBMISSION_ADMIN_REVIEW = "UNDER_RESUBMISSION_ADMIN_REVIEW"
    APPROVED = "APPROVED"
    LOCKED = "LOCKED"


class MicroPhase(str, enum.Enum):
    """Testing sub-phase of a two-phase micro report (derived, never stored)."""

    PRELIM = "PRELIM"
    FINAL = "FINAL"


class FormType(str, enum.Enum):
    """Report form enumeration."""

    STANDARD = "STANDARD"
    MICRO_MIX = "MICRO_MIX"
    MICRO_MIX_WATER = "MICRO_MIX_WATER"
    CHEMISTRY_MIX = "CHEMISTRY_MIX"


class ReportFamily(str, enum.Enum):
    """Status family a form belongs to (decides phase handling)."""

    GENERIC = "generic"
    TWO_PHASE = "two_phase"


class CorrectionStatus(str, enum.Enum):
    """Correction item status enumeration."""

    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class AuditAction(str, enum.Enum):
    """Audit log action enumeration."""

    INSERT = "insert"
    UPDATE = "update"
    STATUS_CHANGE = "status_change"
    CORRECTION_REQUESTED = "correction_requested"
    CORRECTION_RESOLVED = "correction_resolved"
