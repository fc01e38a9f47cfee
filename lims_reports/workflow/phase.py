"""Derive the PRELIM/FINAL testing phase of a two-phase micro report from its status."""

from typing import Optional

from lims_reports.exceptions import WorkflowDefinitionError
from lims_reports.models.enums import MicroPhase, MicroReportStatus

M = MicroReportStatus

PRELIM_STATUSES = frozenset({
    M.UNDER_PRELIMINARY_TESTING_REVIEW,
    M.PRELIMINARY_TESTING_ON_HOLD,
    M.PRELIMINARY_TESTING_NEEDS_CORRECTION,
    M.PRELIMINARY_RESUBMISSION_BY_TESTING,
    M.UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW,
    M.PRELIMINARY_APPROVED,
})

FINAL_STATUSES = frozenset({
    M.UNDER_FINAL_TESTING_REVIEW,
    M.FINAL_TESTING_ON_HOLD,
    M.FINAL_TESTING_NEEDS_CORRECTION,
    M.FINAL_RESUBMISSION_BY_TESTING,
    M.UNDER_FINAL_RESUBMISSION_TESTING_REVIEW,
})

if PRELIM_STATUSES & FINAL_STATUSES:
    raise WorkflowDefinitionError(
        "Statuses cannot be in both phases: "
        + ", ".join(sorted(s.value for s in PRELIM_STATUSES & FINAL_STATUSES))
    )


def derive_phase(status) -> Optional[MicroPhase]:
    """
    Testing phase implied by a status.

    Args:
        status: A micro status member or status string (None allowed)

    Returns:
        ``MicroPhase.PRELIM`` or ``MicroPhase.FINAL``, or None when the status
        is phase-insensitive (including statuses of other families)
    """
    if status is None:
        return None
    raw = str(getattr(status, "value", status)).strip().upper()
    try:
        status = MicroReportStatus(raw)
    except ValueError:
        return None
    if status in PRELIM_STATUSES:
        return MicroPhase.PRELIM
    if status in FINAL_STATUSES:
        return MicroPhase.FINAL
    return None
