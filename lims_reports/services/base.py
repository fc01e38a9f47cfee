"""Base service class with common functionality."""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lims_reports.config import settings
from lims_reports.models.audit import AuditLog
from lims_reports.models.base import BaseModel
from lims_reports.models.enums import AuditAction
from lims_reports.utils.logger import logger

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseService(Generic[ModelType]):
    """
    Base service class providing lookups and audit logging.

    Subclasses own their write paths; every mutation they make is recorded
    through ``_log_audit`` inside the same transaction.
    """

    def __init__(self, model: Type[ModelType]):
        """
        Initialize base service.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model
        self.model_name = model.__name__.lower()

    def get(self, db: Session, id: int) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            db: Database session
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        try:
            return db.query(self.model).filter(self.model.id == id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {self.model_name} with id {id}: {e}")
            raise

    def _log_audit(
        self,
        db: Session,
        action: AuditAction,
        record_id: int,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        role=None,
        user_id: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        """
        Create audit log entry.

        Args:
            db: Database session
            action: Type of action performed
            record_id: ID of the affected record
            old_values: Values before the change
            new_values: Values after the change
            role: Role the actor acted under
            user_id: ID of user performing the action
            reason: Reason for the action
        """
        if not settings.enable_audit_logging:
            return
        try:
            AuditLog.log_change(
                session=db,
                table_name=self.model.__tablename__,
                record_id=record_id,
                action=action,
                old_values=old_values,
                new_values=new_values,
                role=role,
                user_id=user_id,
                reason=reason,
            )
        except ValueError as e:
            # Log error but don't fail the main operation
            logger.error(f"Failed to create audit log: {e}")
