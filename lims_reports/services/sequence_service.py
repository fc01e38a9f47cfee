"""Sequence service: per-scope running numbers for form and report numbers."""

from sqlalchemy import update
from sqlalchemy.orm import Session

from lims_reports.models.sequence import NumberSequence
from lims_reports.services.base import BaseService


def client_scope(client_code: str) -> str:
    return f"client:{client_code.strip().upper()}"


def department_scope(department: str) -> str:
    return f"department:{department.strip().upper()}"


class SequenceService(BaseService[NumberSequence]):
    """
    Hands out running numbers inside the caller's transaction.

    The counter row is bumped with a single ``UPDATE ... SET last_number =
    last_number + 1`` so the row write lock orders concurrent callers; the
    number only becomes visible to others when the caller commits. The first
    number of a scope inserts the row, and two first callers racing on that
    insert surface as an ``IntegrityError`` for the caller to retry.
    """

    def __init__(self):
        """Initialize sequence service."""
        super().__init__(NumberSequence)

    def next_value(self, db: Session, scope: str) -> int:
        """
        Consume and return the next number of ``scope``.

        Args:
            db: Database session (not committed here)
            scope: Counter key, see ``client_scope`` and ``department_scope``

        Returns:
            The number issued, starting at 1
        """
        result = db.execute(
            update(NumberSequence)
            .where(NumberSequence.scope == scope)
            .values(last_number=NumberSequence.last_number + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.add(NumberSequence(scope=scope, last_number=1))
            db.flush()
            return 1

        return (
            db.query(NumberSequence.last_number)
            .filter(NumberSequence.scope == scope)
            .scalar()
        )

    def current_value(self, db: Session, scope: str) -> int:
        """Last number issued for ``scope`` (0 when none yet)."""
        value = (
            db.query(NumberSequence.last_number)
            .filter(NumberSequence.scope == scope)
            .scalar()
        )
        return value or 0


# Global instance
sequence_service = SequenceService()
