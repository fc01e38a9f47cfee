"""Audit log model for tracking report and ledger changes."""

import json

from sqlalchemy import Column, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import validates

from lims_reports.models.base import BaseModel, utcnow
from lims_reports.models.enums import AuditAction


class AuditLog(BaseModel):
    """
    Audit log model for maintaining complete history of report changes.

    Attributes:
        table_name: Name of the table where change occurred
        record_id: ID of the record that was changed
        action: Type of action performed
        old_values: JSON string of values before change
        new_values: JSON string of values after change
        actor_role: Role the change was made under
        user_id: User who made the change
        timestamp: When the change occurred
        reason: Optional reason for the change
    """

    __tablename__ = "audit_logs"

    # Audit rows are written once and carry their own timestamp
    created_at = None
    updated_at = None

    table_name = Column(String(50), nullable=False)
    record_id = Column(Integer, nullable=False)
    action = Column(Enum(AuditAction), nullable=False)
    old_values = Column(Text, nullable=True)  # JSON format
    new_values = Column(Text, nullable=True)  # JSON format
    actor_role = Column(String(20), nullable=True)
    user_id = Column(Integer, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False)
    reason = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_audit_table_record", "table_name", "record_id"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_timestamp", "timestamp"),
    )

    @validates("table_name")
    def validate_table_name(self, key, value):
        """Validate table name is not empty."""
        if not value or not value.strip():
            raise ValueError("Table name cannot be empty")
        return value.strip().lower()

    @validates("old_values", "new_values")
    def validate_json_values(self, key, value):
        """Validate JSON format of value fields."""
        if value is None:
            return value

        if isinstance(value, str):
            try:
                json.loads(value)
            except json.JSONDecodeError:
                raise ValueError(f"{key} must be valid JSON")
            return value

        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Cannot serialize {key} to JSON: {e}")

    def get_old_values_dict(self):
        """Get old values as dictionary."""
        return json.loads(self.old_values) if self.old_values else {}

    def get_new_values_dict(self):
        """Get new values as dictionary."""
        return json.loads(self.new_values) if self.new_values else {}

    def get_changes(self):
        """Get a summary of what changed."""
        old = self.get_old_values_dict()
        new = self.get_new_values_dict()

        if self.action == AuditAction.INSERT:
            return {"created": new}

        changes = {}
        for key in sorted(set(old) | set(new)):
            if old.get(key) != new.get(key):
                changes[key] = {"from": old.get(key), "to": new.get(key)}
        return changes

    @classmethod
    def log_change(
        cls,
        session,
        table_name,
        record_id,
        action,
        old_values=None,
        new_values=None,
        role=None,
        user_id=None,
        reason=None,
    ):
        """
        Create an audit log entry.

        Args:
            session: Database session
            table_name: Name of the table
            record_id: ID of the record
            action: Action performed
            old_values: Dictionary of old values
            new_values: Dictionary of new values
            role: Role the actor acted under
            user_id: Acting user id
            reason: Reason for the action
        """
        audit_log = cls(
            table_name=table_name,
            record_id=record_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
            actor_role=getattr(role, "value", role),
            user_id=user_id,
            reason=reason,
        )
        session.add(audit_log)
        return audit_log

    def __repr__(self):
        return (
            f"<AuditLog(id={self.id}, table='{self.table_name}', "
            f"record={self.record_id}, action='{self.action.value}')>"
        )
