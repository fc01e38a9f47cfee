"""Correction ledger service: raise, resolve and list field-scoped corrections."""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lims_reports.config import settings
from lims_reports.exceptions import (
    CorrectionAlreadyResolved,
    CorrectionNotFound,
    RoleNotPermitted,
)
from lims_reports.models.base import utcnow
from lims_reports.models.correction import CorrectionItem
from lims_reports.models.enums import AuditAction, CorrectionStatus, Role
from lims_reports.schemas.correction import CorrectionItemCreate
from lims_reports.services.base import BaseService
from lims_reports.services.report_service import report_service
from lims_reports.utils.logger import logger, report_logger
from lims_reports.workflow.forms import get_schema

# Dashboard-only aggregate role; never part of a report workflow
NON_LEDGER_ROLES = frozenset({Role.MC})
RESOLVER_ROLES = frozenset({
    Role.CLIENT,
    Role.MICRO,
    Role.CHEMISTRY,
    Role.FRONTDESK,
    Role.ADMIN,
    Role.QA,
})


class CorrectionService(BaseService[CorrectionItem]):
    """
    Service for the per-report correction ledger.

    Items are append-only. A batch is written in one transaction together
    with the optional status change; resolution is a compare-and-swap on the
    item status so that concurrent resolvers get exactly one success.
    """

    def __init__(self):
        """Initialize correction service."""
        super().__init__(CorrectionItem)

    def create_corrections(
        self,
        db: Session,
        report_id: int,
        items: Iterable[Any],
        role,
        target_status=None,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> List[CorrectionItem]:
        """
        Raise a batch of corrections on a report.

        Args:
            db: Database session
            report_id: ID of the report
            items: ``CorrectionItemCreate`` objects or dicts with
                ``fieldKey``/``field_key``, ``message`` and optional ``oldValue``
            role: Requesting role
            target_status: Status to move the report to with this batch
            reason: Reason recorded with the batch (defaults to the configured
                correction reason)
            expected_version: Version the caller last read (for the status change)
            user_id: ID of the requesting user

        Returns:
            Created CorrectionItems in creation order

        Raises:
            RoleNotPermitted: If the role cannot raise corrections
            ValueError: If the batch is empty or an item lacks a field key or message
            ReportNotFound: If the report does not exist
            InvalidTransition: If ``target_status`` is not a legal move
            VersionConflict: If the report changed since ``expected_version``
        """
        role = Role.parse(role)
        if role in NON_LEDGER_ROLES:
            raise RoleNotPermitted(f"Role {role.value} cannot request corrections")

        parsed = [
            item if isinstance(item, CorrectionItemCreate) else CorrectionItemCreate.model_validate(item)
            for item in items
        ]
        if not parsed:
            raise ValueError("At least one correction item is required")

        report = report_service.get_report(db, report_id)
        target_value = None
        if target_status is not None:
            target_value = get_schema(report.form_type).coerce_status(target_status).value
        batch_reason = (reason or "").strip() or settings.correction_default_reason
        current = dict(report.field_values or {})

        try:
            created = []
            for item in parsed:
                old_value = item.old_value if "old_value" in item.model_fields_set else current.get(item.field_key)
                correction = CorrectionItem(
                    report_id=report.id,
                    field_key=item.field_key,
                    message=item.message,
                    status=CorrectionStatus.OPEN,
                    requested_by_role=role,
                    requested_by_id=user_id,
                    old_value=old_value,
                    target_status=target_value,
                    batch_reason=batch_reason,
                )
                db.add(correction)
                created.append(correction)
            db.flush()

            if target_value is not None:
                report_service.stage_status_change(
                    db,
                    report,
                    role,
                    target_value,
                    expected_version=expected_version,
                    reason=batch_reason,
                    user_id=user_id,
                )

            for correction in created:
                self._log_audit(
                    db=db,
                    action=AuditAction.CORRECTION_REQUESTED,
                    record_id=correction.id,
                    new_values={
                        "report_id": report.id,
                        "field_key": correction.field_key,
                        "message": correction.message,
                        "target_status": target_value,
                    },
                    role=role,
                    user_id=user_id,
                    reason=batch_reason,
                )

            db.commit()
            for correction in created:
                db.refresh(correction)

        except (SQLAlchemyError, ValueError) as e:
            db.rollback()
            logger.warning(f"Correction batch on report {report_id} not written: {e}")
            raise

        report_logger(report.form_number).info(
            f"Raised {len(created)} correction(s) "
            f"as {role.value}" + (f", moved to {target_value}" if target_value else "")
        )
        return created

    def resolve_correction(
        self,
        db: Session,
        report_id: int,
        correction_id: int,
        role,
        resolution_note: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> CorrectionItem:
        """
        Resolve one open correction.

        Args:
            db: Database session
            report_id: ID of the report the correction belongs to
            correction_id: ID of the correction
            role: Resolving role
            resolution_note: Free text left by the resolver
            user_id: ID of the resolving user

        Returns:
            The resolved CorrectionItem

        Raises:
            RoleNotPermitted: If the role cannot resolve corrections
            ReportNotFound: If the report does not exist
            CorrectionNotFound: If the correction does not belong to the report
            CorrectionAlreadyResolved: If the correction is not open
        """
        role = Role.parse(role)
        if role not in RESOLVER_ROLES:
            raise RoleNotPermitted(f"Role {role.value} cannot resolve corrections")

        correction = (
            db.query(CorrectionItem)
            .filter(
                CorrectionItem.id == correction_id,
                CorrectionItem.report_id == report_id,
            )
            .first()
        )
        if correction is None:
            report_service.get_report(db, report_id)
            raise CorrectionNotFound(report_id, correction_id)

        try:
            result = db.execute(
                update(CorrectionItem)
                .where(
                    CorrectionItem.id == correction_id,
                    CorrectionItem.status == CorrectionStatus.OPEN,
                )
                .values(
                    status=CorrectionStatus.RESOLVED,
                    resolved_at=utcnow(),
                    resolved_by_role=role,
                    resolved_by_id=user_id,
                    resolution_note=resolution_note,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                logger.warning(f"Correction {correction_id} was already resolved")
                raise CorrectionAlreadyResolved(correction_id)

            self._log_audit(
                db=db,
                action=AuditAction.CORRECTION_RESOLVED,
                record_id=correction_id,
                old_values={"status": CorrectionStatus.OPEN.value},
                new_values={
                    "status": CorrectionStatus.RESOLVED.value,
                    "resolution_note": resolution_note,
                },
                role=role,
                user_id=user_id,
            )
            db.commit()
            db.refresh(correction)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error resolving correction {correction_id}: {e}")
            raise

        report_logger(correction.report.form_number).info(
            f"Resolved correction {correction_id} ({correction.field_key}) as {role.value}"
        )
        return correction

    def list_corrections(self, db: Session, report_id: int) -> List[CorrectionItem]:
        """All corrections of a report, open and resolved, in creation order."""
        report_service.get_report(db, report_id)
        return (
            db.query(CorrectionItem)
            .filter(CorrectionItem.report_id == report_id)
            .order_by(CorrectionItem.id)
            .all()
        )

    def open_corrections(self, db: Session, report_id: int) -> List[CorrectionItem]:
        """Open corrections of a report in creation order."""
        return [item for item in self.list_corrections(db, report_id) if item.is_open]

    def open_counts_by_field(self, db: Session, report_id: int) -> Dict[str, int]:
        """Number of open corrections per field key (for field badges)."""
        report_service.get_report(db, report_id)
        rows = (
            db.query(CorrectionItem.field_key, func.count(CorrectionItem.id))
            .filter(
                CorrectionItem.report_id == report_id,
                CorrectionItem.status == CorrectionStatus.OPEN,
            )
            .group_by(CorrectionItem.field_key)
            .all()
        )
        return {field_key: count for field_key, count in rows}


# Global instance
correction_service = CorrectionService()
