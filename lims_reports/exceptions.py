"""Error types raised by the report lifecycle engine.

Recoverable conditions derive from ``LifecycleError`` (a ``ValueError``), so
callers that already handle ``ValueError`` keep working. Inconsistent static
workflow tables raise ``WorkflowDefinitionError`` at import time; that one is a
code defect and is never meant to be caught.
"""

from typing import Iterable, Optional


class LifecycleError(ValueError):
    """Base class for recoverable workflow errors."""


class InvalidTransition(LifecycleError):
    """Status change not present in the status graph for the role."""

    def __init__(self, role, from_status, to_status, detail: Optional[str] = None):
        self.role = role
        self.from_status = from_status
        self.to_status = to_status
        message = f"Invalid transition for {_text(role)}: {_text(from_status)} -> {_text(to_status)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class FieldNotWritable(LifecycleError):
    """One or more fields may not be written by the role in the current status."""

    def __init__(self, role, status, fields: Iterable[str]):
        self.role = role
        self.status = status
        self.fields = list(fields)
        super().__init__(
            f"Role {_text(role)} cannot edit in status {_text(status)}: {', '.join(self.fields)}"
        )


class ReportNotFound(LifecycleError):
    """Report id does not exist."""

    def __init__(self, report_id):
        self.report_id = report_id
        super().__init__(f"Report with ID {report_id} not found")


class CorrectionNotFound(LifecycleError):
    """Correction id does not belong to the report."""

    def __init__(self, report_id, correction_id):
        self.report_id = report_id
        self.correction_id = correction_id
        super().__init__(
            f"Correction {correction_id} not found for report {report_id}"
        )


class CorrectionAlreadyResolved(LifecycleError):
    """Correction item is no longer open."""

    def __init__(self, correction_id):
        self.correction_id = correction_id
        super().__init__(f"Correction {correction_id} is already resolved")


class VersionConflict(LifecycleError):
    """Report was changed by someone else since it was read."""

    def __init__(self, report_id, expected_version, current_version):
        self.report_id = report_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Report {report_id} was updated by someone else "
            f"(expected version {expected_version}, current {current_version}). "
            "Reload and try again."
        )


class ExpectedVersionRequired(LifecycleError):
    """A role outside the version-exempt set sent no expected version."""

    def __init__(self, role):
        self.role = role
        super().__init__(f"expected_version is required for role {_text(role)}")


class ChangeReasonRequired(LifecycleError):
    """A reason is mandatory for changes to critical fields."""

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(
            f"Reason for change is required for: {', '.join(self.fields)}"
        )


class NumberingConflict(LifecycleError):
    """A form or report number could not be issued without a collision."""

    def __init__(self, scope, attempts):
        self.scope = scope
        self.attempts = attempts
        super().__init__(f"Could not issue a number for {scope} after {attempts} attempts")


class RoleNotPermitted(LifecycleError):
    """Role may not perform the requested ledger or report action."""


class WorkflowDefinitionError(RuntimeError):
    """Static workflow tables are inconsistent."""


def _text(value) -> str:
    return getattr(value, "value", value)
