"""Report service: drafts, field saves and status changes against stored reports."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lims_reports.config import settings
from lims_reports.exceptions import (
    ChangeReasonRequired,
    ExpectedVersionRequired,
    FieldNotWritable,
    LifecycleError,
    NumberingConflict,
    ReportNotFound,
    RoleNotPermitted,
    VersionConflict,
)
from lims_reports.models.enums import (
    AuditAction,
    ChemistryReportStatus,
    MicroReportStatus,
    ReportStatus,
    Role,
)
from lims_reports.models.base import utcnow
from lims_reports.models.report import Report
from lims_reports.services.base import BaseService
from lims_reports.services.sequence_service import (
    client_scope,
    department_scope,
    sequence_service,
)
from lims_reports.utils.logger import logger, report_logger
from lims_reports.workflow.forms import CRITICAL_FIELDS, get_schema
from lims_reports.workflow.validation import ValidationResult

DRAFT_CREATOR_ROLES = frozenset({Role.CLIENT, Role.ADMIN, Role.SYSTEMADMIN})
VERSION_EXEMPT_ROLES = frozenset({Role.ADMIN, Role.SYSTEMADMIN})

# Entering one of these starts lab work and assigns the report number
TESTING_START_STATUSES = frozenset({
    ReportStatus.UNDER_TESTING_REVIEW.value,
    MicroReportStatus.UNDER_PRELIMINARY_TESTING_REVIEW.value,
    ChemistryReportStatus.UNDER_TESTING_REVIEW.value,
})

# First-number races on a fresh counter row are retried this many times
NUMBERING_ATTEMPTS = 3


def _sequence_number(year: int, number: int) -> str:
    """``YYYY`` followed by a running number padded to at least four digits."""
    return f"{year}{number:04d}"


def _plain(value):
    if hasattr(value, "model_dump"):
        return value.model_dump(by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


@dataclass
class FieldUpdateResult:
    """Outcome of ``update_fields``."""

    report: Report
    applied: Tuple[str, ...] = ()
    denied: Tuple[str, ...] = ()
    changes: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class ReportService(BaseService[Report]):
    """
    Service for stored lab reports.

    Provides functionality for:
    - Creating drafts with per-client form numbers
    - Saving field values through the edit-permission gate
    - Moving reports through the status graph under an optimistic version check
    - Running completeness validation against stored values
    """

    def __init__(self):
        """Initialize report service."""
        super().__init__(Report)

    def get_report(self, db: Session, report_id: int) -> Report:
        """
        Get a report by ID.

        Raises:
            ReportNotFound: If no report has this ID
        """
        report = self.get(db, report_id)
        if report is None:
            raise ReportNotFound(report_id)
        return report

    def next_form_number(self, db: Session, client_code: str, now: Optional[datetime] = None) -> str:
        """Issue the next ``<CLIENT>-<YYYY><NNNN>`` form number for a client.

        The client's counter row is bumped inside the caller's transaction, so
        a rollback hands the number back.
        """
        client_code = client_code.strip().upper()
        number = sequence_service.next_value(db, client_scope(client_code))
        year = (now or utcnow()).year
        return f"{client_code}-{_sequence_number(year, number)}"

    def next_report_number(self, db: Session, department: str, now: Optional[datetime] = None) -> str:
        """Issue the next ``<DEPT>-<YYYY><NNNN>`` lab report number."""
        department = department.strip().upper()
        number = sequence_service.next_value(db, department_scope(department))
        year = (now or utcnow()).year
        return f"{department}-{_sequence_number(year, number)}"

    def create_draft(
        self,
        db: Session,
        form_type,
        role,
        client_code: str,
        values: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
    ) -> Report:
        """
        Create a report in DRAFT.

        Args:
            db: Database session
            form_type: Form of the report
            role: Acting role (CLIENT, ADMIN or SYSTEMADMIN)
            client_code: Client the report belongs to
            values: Initial field values, checked against the edit gate
            user_id: ID of the creating user

        Returns:
            Created Report

        Raises:
            RoleNotPermitted: If the role may not create reports
            FieldNotWritable: If an initial value is outside the role's DRAFT rights
            NumberingConflict: If no free form number could be issued
        """
        role = Role.parse(role)
        if role not in DRAFT_CREATOR_ROLES:
            raise RoleNotPermitted(f"Role {role.value} cannot create reports")
        if not client_code or not client_code.strip():
            raise ValueError("Client code is required")

        schema = get_schema(form_type)
        values = _plain(dict(values or {}))
        if values:
            schema.check_writable(role, schema.initial_status, values.keys())

        for attempt in range(1, NUMBERING_ATTEMPTS + 1):
            try:
                return self._insert_draft(db, schema, role, client_code, values, user_id)
            except IntegrityError as e:
                logger.warning(
                    f"Form number collision for client {client_code.strip().upper()} "
                    f"(attempt {attempt}/{NUMBERING_ATTEMPTS}): {e.orig}"
                )
        raise NumberingConflict(client_scope(client_code), NUMBERING_ATTEMPTS)

    def _insert_draft(self, db: Session, schema, role: Role, client_code: str, values, user_id) -> Report:
        try:
            report = Report(
                form_type=schema.form_type,
                client_code=client_code,
                form_number=self.next_form_number(db, client_code),
                status=schema.initial_status.value,
                version=0,
                field_values=values,
                created_by_id=user_id,
                updated_by_id=user_id,
            )
            db.add(report)
            db.flush()

            self._log_audit(
                db=db,
                action=AuditAction.INSERT,
                record_id=report.id,
                new_values={
                    "form_number": report.form_number,
                    "form_type": schema.form_type.value,
                    "status": report.status,
                    "field_values": values,
                },
                role=role,
                user_id=user_id,
            )

            db.commit()
            db.refresh(report)

            report_logger(report.form_number).info(
                f"Created {schema.form_type.value} report for client {report.client_code}"
            )
            return report

        except IntegrityError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating report draft: {e}")
            raise

    def update_fields(
        self,
        db: Session,
        report_id: int,
        role,
        values: Dict[str, Any],
        expected_version: Optional[int] = None,
        reason: Optional[str] = None,
        user_id: Optional[int] = None,
        partial: bool = False,
    ) -> FieldUpdateResult:
        """
        Save field values on a report.

        Every key is classified with the edit-permission gate for the report's
        current status. By default a single denied key rejects the whole save;
        with ``partial=True`` the permitted keys are written and the denied
        ones are reported back.

        Args:
            db: Database session
            report_id: ID of the report
            role: Acting role
            values: Field values keyed by field key
            expected_version: Version the caller last read
            reason: Reason for change (required when touching critical fields)
            user_id: ID of the acting user
            partial: Apply the writable subset instead of rejecting the save

        Returns:
            FieldUpdateResult with the refreshed report

        Raises:
            ReportNotFound: If the report does not exist
            FieldNotWritable: If keys are denied (or none is writable with ``partial``)
            ChangeReasonRequired: If critical fields change without a reason
            VersionConflict: If the report changed since ``expected_version``
        """
        role = Role.parse(role)
        if not values:
            raise ValueError("At least one field value is required")

        report = self.get_report(db, report_id)
        self._require_version(role, expected_version)
        schema = get_schema(report.form_type)

        allowed, denied = schema.split_writable(role, report.status, values.keys())
        if denied and (not partial or not allowed):
            report_logger(report.form_number).warning(
                f"Rejected edit by {role.value} in {report.status}: {', '.join(denied)}"
            )
            raise FieldNotWritable(role, schema.coerce_status(report.status), denied)

        critical = [key for key in allowed if key in CRITICAL_FIELDS]
        if critical and settings.require_change_reason and not (reason or "").strip():
            raise ChangeReasonRequired(critical)

        current = dict(report.field_values or {})
        updated = dict(current)
        changes = {}
        for key in allowed:
            new_value = _plain(values[key])
            if current.get(key) != new_value:
                changes[key] = {"from": current.get(key), "to": new_value}
            updated[key] = new_value

        try:
            self._compare_and_set(
                db,
                report,
                expected_version,
                {"field_values": updated, "updated_by_id": user_id},
            )
            self._log_audit(
                db=db,
                action=AuditAction.UPDATE,
                record_id=report.id,
                old_values={key: change["from"] for key, change in changes.items()},
                new_values={key: change["to"] for key, change in changes.items()},
                role=role,
                user_id=user_id,
                reason=reason,
            )
            db.commit()
            db.refresh(report)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating report {report_id}: {e}")
            raise
        except LifecycleError:
            db.rollback()
            raise

        report_logger(report.form_number).info(
            f"Updated {len(allowed)} field(s) as {role.value} (version {report.version})"
        )
        return FieldUpdateResult(report=report, applied=allowed, denied=denied, changes=changes)

    def change_status(
        self,
        db: Session,
        report_id: int,
        role,
        target_status,
        expected_version: Optional[int] = None,
        reason: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Report:
        """
        Move a report to another status.

        Args:
            db: Database session
            report_id: ID of the report
            role: Acting role
            target_status: Status to move to
            expected_version: Version the caller last read
            reason: Reason recorded with the change
            user_id: ID of the acting user

        Returns:
            Updated Report

        Raises:
            ReportNotFound: If the report does not exist
            InvalidTransition: If the status graph forbids the move
            VersionConflict: If the report changed since ``expected_version``
        """
        report = self.get_report(db, report_id)
        previous = report.status
        form_number = report.form_number
        try:
            self.stage_status_change(
                db,
                report,
                role,
                target_status,
                expected_version=expected_version,
                reason=reason,
                user_id=user_id,
            )
            db.commit()
            db.refresh(report)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error changing status of report {report_id}: {e}")
            raise
        except LifecycleError as e:
            db.rollback()
            report_logger(form_number).warning(f"Status change refused: {e}")
            raise

        report_logger(form_number).info(f"{previous} -> {report.status} by {Role.parse(role).value}")
        return report

    def stage_status_change(
        self,
        db: Session,
        report: Report,
        role,
        target_status,
        expected_version: Optional[int] = None,
        reason: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Report:
        """
        Apply a status change inside the caller's transaction without committing.

        Used by ``change_status`` and by the correction ledger, which moves the
        report in the same transaction as the correction batch.
        """
        role = Role.parse(role)
        self._require_version(role, expected_version)
        schema = get_schema(report.form_type)
        source, target = schema.check_transition(role, report.status, target_status)

        changes: Dict[str, Any] = {"status": target.value, "updated_by_id": user_id}
        if target.value in TESTING_START_STATUSES and not report.report_number:
            changes["report_number"] = self.next_report_number(db, schema.department)
        if target.value == "LOCKED":
            changes["locked_at"] = utcnow()

        self._compare_and_set(db, report, expected_version, changes)
        self._log_audit(
            db=db,
            action=AuditAction.STATUS_CHANGE,
            record_id=report.id,
            old_values={"status": source.value},
            new_values={key: value for key, value in changes.items() if key != "updated_by_id"},
            role=role,
            user_id=user_id,
            reason=reason,
        )
        return report

    def validate_report(
        self,
        report: Report,
        role,
        phase=None,
        required_override: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        """Run the completeness check on a stored report's values and status."""
        schema = get_schema(report.form_type)
        return schema.validate(
            role,
            report.field_values or {},
            required_override=required_override,
            phase=phase,
            status=report.status,
        )

    def allowed_transitions(self, report: Report, role) -> Tuple[str, ...]:
        """Status values ``role`` may move this report to."""
        schema = get_schema(report.form_type)
        return tuple(s.value for s in schema.graph.allowed_transitions(role, report.status))

    def _require_version(self, role: Role, expected_version: Optional[int]) -> None:
        if (
            settings.require_expected_version
            and expected_version is None
            and role not in VERSION_EXEMPT_ROLES
        ):
            raise ExpectedVersionRequired(role)

    def _compare_and_set(
        self,
        db: Session,
        report: Report,
        expected_version: Optional[int],
        changes: Dict[str, Any],
    ) -> None:
        """
        Write ``changes`` only if the stored version still matches.

        The version read with the report is the guard when the caller sent
        none. The version is bumped by one on success.

        Raises:
            VersionConflict: If the stored version differs
        """
        guard = report.version if expected_version is None else expected_version
        if guard != report.version:
            raise VersionConflict(report.id, expected_version, report.version)

        result = db.execute(
            update(Report)
            .where(Report.id == report.id, Report.version == guard)
            .values(version=Report.version + 1, **changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.expire(report)
            raise VersionConflict(report.id, guard, report.version)
        db.refresh(report)


# Global instance
report_service = ReportService()
