"""
Status graphs for the report families.

Defines:
- The ``Transition`` record held for every status
- ``StatusGraph``, the role-gated lookup over one family's transitions
- ``GENERIC_GRAPH`` (one-phase form), ``MICRO_GRAPH`` (two-phase micro forms)
  and ``CHEMISTRY_GRAPH`` (chemistry form)

Every graph is built once at import and checked for consistency; a broken
table raises ``WorkflowDefinitionError`` before any caller can use it.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Tuple, Type

from lims_reports.exceptions import InvalidTransition, WorkflowDefinitionError
from lims_reports.models.enums import (
    ChemistryReportStatus,
    MicroReportStatus,
    ReportStatus,
    Role,
)

ADMIN = Role.ADMIN
SYSTEMADMIN = Role.SYSTEMADMIN
FRONTDESK = Role.FRONTDESK
MICRO = Role.MICRO
CHEMISTRY = Role.CHEMISTRY
QA = Role.QA
CLIENT = Role.CLIENT


@dataclass(frozen=True)
class Transition:
    """Outgoing edges and edit rights of a single status."""

    can_set: FrozenSet[Role]
    next: Tuple[Any, ...]
    can_edit: FrozenSet[Role]
    next_editable_by: FrozenSet[Role]

    @property
    def is_terminal(self) -> bool:
        return not self.next


def _t(
    can_set: Iterable[Role],
    targets: Iterable,
    can_edit: Iterable[Role],
    next_editable_by: Iterable[Role] = (),
) -> Transition:
    return Transition(
        can_set=frozenset(can_set),
        next=tuple(targets),
        can_edit=frozenset(can_edit),
        next_editable_by=frozenset(next_editable_by),
    )


TERMINAL = _t((), (), ())


class StatusGraph:
    """Role-gated transition table over one status enumeration."""

    def __init__(self, name: str, status_enum: Type, transitions: Mapping):
        self.name = name
        self.status_enum = status_enum
        self._transitions = MappingProxyType(dict(transitions))

    def __repr__(self):
        return f"<StatusGraph({self.name!r}, statuses={len(self._transitions)})>"

    def __contains__(self, status) -> bool:
        try:
            self.coerce(status)
        except ValueError:
            return False
        return True

    @property
    def statuses(self) -> Tuple:
        return tuple(self.status_enum)

    def coerce(self, status):
        """Resolve a status member or status string for this graph.

        Raises:
            ValueError: If the status does not belong to this graph's family
        """
        if isinstance(status, self.status_enum):
            return status
        raw = getattr(status, "value", status)
        try:
            return self.status_enum(str(raw or "").strip().upper())
        except ValueError:
            raise ValueError(f"Unknown {self.name} status: {raw!r}") from None

    def transition(self, status) -> Transition:
        return self._transitions[self.coerce(status)]

    def can_transition(self, role, from_status, to_status) -> bool:
        """True iff ``to_status`` is a next status and ``role`` may set it."""
        entry = self.transition(from_status)
        target = self.coerce(to_status)
        return target in entry.next and Role.parse(role) in entry.can_set

    def check_transition(self, role, from_status, to_status):
        """Raise ``InvalidTransition`` unless ``role`` may move the report.

        Returns:
            Tuple of the coerced ``(from_status, to_status)``
        """
        role = Role.parse(role)
        source = self.coerce(from_status)
        target = self.coerce(to_status)
        entry = self._transitions[source]

        if entry.is_terminal:
            raise InvalidTransition(role, source, target, "terminal status")
        if target not in entry.next:
            raise InvalidTransition(role, source, target, "not a next status")
        if role not in entry.can_set:
            raise InvalidTransition(role, source, target, "role may not set status")
        return source, target

    def is_editable(self, role, status) -> bool:
        return Role.parse(role) in self.transition(status).can_edit

    def allowed_transitions(self, role, status) -> Tuple:
        """Next statuses ``role`` may move the report to from ``status``."""
        entry = self.transition(status)
        if Role.parse(role) not in entry.can_set:
            return ()
        return entry.next

    def next_statuses(self, status) -> Tuple:
        return self.transition(status).next

    def next_editable_by(self, status) -> FrozenSet[Role]:
        return self.transition(status).next_editable_by

    def is_terminal(self, status) -> bool:
        return self.transition(status).is_terminal

    def terminal_statuses(self) -> Tuple:
        return tuple(s for s in self.status_enum if self._transitions[s].is_terminal)

    def editors(self, status) -> FrozenSet[Role]:
        return self.transition(status).can_edit

    def reachable_from(self, status) -> FrozenSet:
        """Statuses reachable from ``status`` along any edges (itself included)."""
        start = self.coerce(status)
        seen = {start}
        pending = [start]
        while pending:
            for target in self._transitions[pending.pop()].next:
                if target not in seen:
                    seen.add(target)
                    pending.append(target)
        return frozenset(seen)

    def definition(self) -> Dict[str, Dict[str, Any]]:
        """JSON-serialisable dump of the graph, keyed by status value."""
        return {
            status.value: {
                "canSet": sorted(r.value for r in entry.can_set),
                "next": [s.value for s in entry.next],
                "nextEditableBy": sorted(r.value for r in entry.next_editable_by),
                "canEdit": sorted(r.value for r in entry.can_edit),
                "terminal": entry.is_terminal,
            }
            for status, entry in self._transitions.items()
        }


def _is_absorbing(status) -> bool:
    return status.value == "LOCKED" or status.value.endswith("_REJECTED")


def check_graph(graph: StatusGraph) -> StatusGraph:
    """Check a graph's static shape.

    Raises:
        WorkflowDefinitionError: If any status is missing, any edge dangles,
            a terminal status has exits or a live status has no way forward
    """
    problems = []
    keys = set(graph._transitions)

    for status in graph.status_enum:
        if status not in keys:
            problems.append(f"{status.value}: no transition entry")
    for status in keys:
        if not isinstance(status, graph.status_enum):
            problems.append(f"{status!r}: not a {graph.status_enum.__name__}")

    for status, entry in graph._transitions.items():
        label = getattr(status, "value", status)
        for target in entry.next:
            if target not in keys:
                problems.append(f"{label}: next status {target!r} has no entry")
        roles = entry.can_set | entry.can_edit | entry.next_editable_by
        if Role.MC in roles:
            problems.append(f"{label}: {Role.MC.value} cannot appear in a workflow table")

        if _is_absorbing(status):
            if entry.next or entry.can_set or entry.can_edit:
                problems.append(f"{label}: terminal status must have no exits or editors")
            continue
        if not entry.next:
            problems.append(f"{label}: non-terminal status has no next status")
        if not entry.can_set:
            problems.append(f"{label}: no role can advance the report")
        if not entry.can_edit:
            problems.append(f"{label}: no role can edit the report")

    if problems:
        raise WorkflowDefinitionError(
            f"{graph.name} status graph is inconsistent: " + "; ".join(problems)
        )
    return graph


G = ReportStatus

GENERIC_GRAPH = check_graph(StatusGraph("generic", ReportStatus, {
    G.DRAFT: _t(
        {CLIENT, FRONTDESK, ADMIN}, [G.SUBMITTED_BY_CLIENT], {CLIENT}, {FRONTDESK}
    ),
    G.SUBMITTED_BY_CLIENT: _t(
        {FRONTDESK},
        [G.RECEIVED_BY_FRONTDESK, G.FRONTDESK_NEEDS_CORRECTION],
        {FRONTDESK},
        {FRONTDESK},
    ),
    G.FRONTDESK_NEEDS_CORRECTION: _t(
        {CLIENT}, [G.SUBMITTED_BY_CLIENT], {CLIENT}, {FRONTDESK}
    ),
    G.RECEIVED_BY_FRONTDESK: _t(
        {FRONTDESK},
        [G.UNDER_TESTING_REVIEW, G.FRONTDESK_ON_HOLD, G.FRONTDESK_REJECTED],
        {FRONTDESK},
        {MICRO},
    ),
    G.FRONTDESK_ON_HOLD: _t(
        {FRONTDESK},
        [G.RECEIVED_BY_FRONTDESK, G.CLIENT_NEEDS_CORRECTION, G.FRONTDESK_REJECTED],
        {FRONTDESK},
        {FRONTDESK},
    ),
    G.CLIENT_NEEDS_CORRECTION: _t(
        {CLIENT}, [G.SUBMITTED_BY_CLIENT], {CLIENT}, {FRONTDESK}
    ),
    G.UNDER_TESTING_REVIEW: _t(
        {MICRO},
        [
            G.TESTING_ON_HOLD,
            G.TESTING_NEEDS_CORRECTION,
            G.TESTING_REJECTED,
            G.UNDER_QA_REVIEW,
        ],
        {MICRO},
        {QA},
    ),
    G.TESTING_ON_HOLD: _t(
        {MICRO}, [G.UNDER_TESTING_REVIEW, G.TESTING_REJECTED], {MICRO}, {MICRO}
    ),
    G.TESTING_NEEDS_CORRECTION: _t(
        {CLIENT}, [G.UNDER_TESTING_REVIEW], {CLIENT}, {MICRO}
    ),
    G.UNDER_QA_REVIEW: _t(
        {QA},
        [G.QA_NEEDS_CORRECTION, G.QA_REJECTED, G.UNDER_ADMIN_REVIEW],
        {QA},
        {ADMIN},
    ),
    G.QA_NEEDS_CORRECTION: _t({MICRO}, [G.UNDER_TESTING_REVIEW], {MICRO}, {MICRO}),
    G.UNDER_ADMIN_REVIEW: _t(
        {ADMIN, SYSTEMADMIN},
        [G.ADMIN_NEEDS_CORRECTION, G.ADMIN_REJECTED, G.APPROVED],
        {ADMIN},
        {ADMIN},
    ),
    G.ADMIN_NEEDS_CORRECTION: _t({QA}, [G.UNDER_QA_REVIEW], {QA}, {QA}),
    G.APPROVED: _t({ADMIN, SYSTEMADMIN}, [G.LOCKED], {ADMIN}),
    G.FRONTDESK_REJECTED: TERMINAL,
    G.TESTING_REJECTED: TERMINAL,
    G.QA_REJECTED: TERMINAL,
    G.ADMIN_REJECTED: TERMINAL,
    G.LOCKED: TERMINAL,
}))


M = MicroReportStatus

MICRO_GRAPH = check_graph(StatusGraph("micro", MicroReportStatus, {
    M.DRAFT: _t({CLIENT, ADMIN}, [M.SUBMITTED_BY_CLIENT], {CLIENT}, {FRONTDESK}),
    M.SUBMITTED_BY_CLIENT: _t(
        {MICRO, FRONTDESK},
        [M.UNDER_PRELIMINARY_TESTING_REVIEW, M.FRONTDESK_NEEDS_CORRECTION],
        {FRONTDESK},
        {MICRO},
    ),
    M.FRONTDESK_NEEDS_CORRECTION: _t(
        {CLIENT}, [M.SUBMITTED_BY_CLIENT], {CLIENT}, {FRONTDESK}
    ),
    # Preliminary pass
    M.UNDER_PRELIMINARY_TESTING_REVIEW: _t(
        {MICRO},
        [
            M.PRELIMINARY_TESTING_ON_HOLD,
            M.PRELIMINARY_TESTING_NEEDS_CORRECTION,
            M.UNDER_QA_PRELIMINARY_REVIEW,
        ],
        {MICRO},
        {QA},
    ),
    M.PRELIMINARY_TESTING_ON_HOLD: _t(
        {MICRO}, [M.UNDER_PRELIMINARY_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    M.PRELIMINARY_TESTING_NEEDS_CORRECTION: _t(
        {CLIENT}, [M.UNDER_CLIENT_PRELIMINARY_CORRECTION], {CLIENT}, {CLIENT}
    ),
    M.UNDER_CLIENT_PRELIMINARY_CORRECTION: _t(
        {CLIENT}, [M.PRELIMINARY_RESUBMISSION_BY_CLIENT], {CLIENT}, {MICRO}
    ),
    M.PRELIMINARY_RESUBMISSION_BY_CLIENT: _t(
        {MICRO}, [M.UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    M.UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW: _t(
        {MICRO}, [M.PRELIMINARY_RESUBMISSION_BY_TESTING], {MICRO}, {QA}
    ),
    M.PRELIMINARY_RESUBMISSION_BY_TESTING: _t(
        {QA}, [M.UNDER_QA_PRELIMINARY_REVIEW], {QA}, {QA}
    ),
    M.UNDER_QA_PRELIMINARY_REVIEW: _t(
        {QA},
        [M.QA_NEEDS_PRELIMINARY_CORRECTION, M.UNDER_CLIENT_PRELIMINARY_REVIEW],
        {QA},
        {ADMIN},
    ),
    M.QA_NEEDS_PRELIMINARY_CORRECTION: _t(
        {MICRO}, [M.UNDER_PRELIMINARY_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    M.UNDER_CLIENT_PRELIMINARY_REVIEW: _t(
        {CLIENT},
        [M.CLIENT_NEEDS_PRELIMINARY_CORRECTION, M.PRELIMINARY_APPROVED],
        {ADMIN},
        {MICRO},
    ),
    M.CLIENT_NEEDS_PRELIMINARY_CORRECTION: _t(
        {MICRO}, [M.UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    M.PRELIMINARY_APPROVED: _t(
        {MICRO}, [M.UNDER_FINAL_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    # Final pass
    M.UNDER_FINAL_TESTING_REVIEW: _t(
        {MICRO},
        [
            M.FINAL_TESTING_ON_HOLD,
            M.FINAL_TESTING_NEEDS_CORRECTION,
            M.UNDER_QA_FINAL_REVIEW,
        ],
        {MICRO},
        {QA},
    ),
    M.FINAL_TESTING_ON_HOLD: _t(
        {MICRO},
        [M.UNDER_FINAL_TESTING_REVIEW, M.FINAL_TESTING_NEEDS_CORRECTION],
        {MICRO},
        {MICRO},
    ),
    M.FINAL_TESTING_NEEDS_CORRECTION: _t(
        {CLIENT}, [M.UNDER_CLIENT_FINAL_CORRECTION], {CLIENT}, {CLIENT}
    ),
    M.UNDER_CLIENT_FINAL_CORRECTION: _t(
        {CLIENT}, [M.FINAL_RESUBMISSION_BY_CLIENT], {CLIENT}, {MICRO}
    ),
    M.FINAL_RESUBMISSION_BY_CLIENT: _t(
        {MICRO}, [M.UNDER_FINAL_RESUBMISSION_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    M.UNDER_FINAL_RESUBMISSION_TESTING_REVIEW: _t(
        {MICRO}, [M.FINAL_RESUBMISSION_BY_TESTING], {MICRO}, {QA}
    ),
    M.FINAL_RESUBMISSION_BY_TESTING: _t(
        {QA}, [M.UNDER_FINAL_RESUBMISSION_QA_REVIEW], {QA}, {QA}
    ),
    M.UNDER_FINAL_RESUBMISSION_QA_REVIEW: _t(
        {QA},
        [M.QA_NEEDS_FINAL_CORRECTION, M.UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW],
        {QA},
        {ADMIN},
    ),
    M.UNDER_QA_FINAL_REVIEW: _t(
        {QA}, [M.QA_NEEDS_FINAL_CORRECTION, M.UNDER_ADMIN_REVIEW], {QA}, {ADMIN}
    ),
    M.QA_NEEDS_FINAL_CORRECTION: _t(
        {MICRO}, [M.UNDER_FINAL_TESTING_REVIEW], {MICRO}, {MICRO}
    ),
    # Admin review
    M.UNDER_ADMIN_REVIEW: _t(
        {ADMIN, SYSTEMADMIN},
        [M.ADMIN_NEEDS_CORRECTION, M.ADMIN_REJECTED, M.RECEIVED_BY_FRONTDESK],
        {ADMIN},
        {FRONTDESK},
    ),
    M.UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW: _t(
        {ADMIN, SYSTEMADMIN},
        [M.ADMIN_NEEDS_CORRECTION, M.ADMIN_REJECTED, M.RECEIVED_BY_FRONTDESK],
        {ADMIN},
        {FRONTDESK},
    ),
    M.ADMIN_NEEDS_CORRECTION: _t({QA}, [M.UNDER_QA_FINAL_REVIEW], {QA}, {QA}),
    # Release to client
    M.RECEIVED_BY_FRONTDESK: _t(
        {FRONTDESK},
        [M.UNDER_CLIENT_FINAL_REVIEW, M.FRONTDESK_ON_HOLD],
        {FRONTDESK},
        {ADMIN},
    ),
    M.FRONTDESK_ON_HOLD: _t(
        {FRONTDESK}, [M.RECEIVED_BY_FRONTDESK], {FRONTDESK}, {FRONTDESK}
    ),
    M.UNDER_CLIENT_FINAL_REVIEW: _t(
        {CLIENT},
        [M.FINAL_APPROVED, M.CLIENT_NEEDS_FINAL_CORRECTION],
        {ADMIN},
        {ADMIN},
    ),
    M.CLIENT_NEEDS_FINAL_CORRECTION: _t(
        {MICRO, QA, ADMIN},
        [M.UNDER_FINAL_RESUBMISSION_TESTING_REVIEW],
        {MICRO},
        {MICRO},
    ),
    M.FINAL_APPROVED: _t({ADMIN, SYSTEMADMIN}, [M.LOCKED], {ADMIN}),
    M.ADMIN_REJECTED: TERMINAL,
    M.LOCKED: TERMINAL,
}))


C = ChemistryReportStatus

CHEMISTRY_GRAPH = check_graph(StatusGraph("chemistry", ChemistryReportStatus, {
    C.DRAFT: _t({CLIENT}, [C.SUBMITTED_BY_CLIENT], {CLIENT}, {CLIENT, FRONTDESK}),
    C.SUBMITTED_BY_CLIENT: _t(
        {CHEMISTRY, FRONTDESK},
        [C.UNDER_TESTING_REVIEW, C.FRONTDESK_NEEDS_CORRECTION],
        {CHEMISTRY},
        {CHEMISTRY},
    ),
    C.FRONTDESK_NEEDS_CORRECTION: _t(
        {CLIENT}, [C.SUBMITTED_BY_CLIENT], {CLIENT}, {CLIENT}
    ),
    # Testing
    C.UNDER_TESTING_REVIEW: _t(
        {CHEMISTRY},
        [C.TESTING_ON_HOLD, C.TESTING_NEEDS_CORRECTION, C.UNDER_QA_REVIEW],
        {CHEMISTRY},
        {QA},
    ),
    C.TESTING_ON_HOLD: _t(
        {CHEMISTRY}, [C.UNDER_TESTING_REVIEW], {CHEMISTRY}, {CHEMISTRY}
    ),
    C.TESTING_NEEDS_CORRECTION: _t(
        {CLIENT}, [C.UNDER_CLIENT_CORRECTION], {CLIENT}, {CLIENT}
    ),
    C.UNDER_CLIENT_CORRECTION: _t(
        {CLIENT}, [C.RESUBMISSION_BY_CLIENT], {CLIENT}, {CHEMISTRY}
    ),
    C.RESUBMISSION_BY_CLIENT: _t(
        {CHEMISTRY}, [C.UNDER_TESTING_REVIEW], {CHEMISTRY}, {CHEMISTRY}
    ),
    # Review
    C.UNDER_QA_REVIEW: _t(
        {QA}, [C.QA_NEEDS_CORRECTION, C.UNDER_ADMIN_REVIEW], {QA}, {ADMIN}
    ),
    C.QA_NEEDS_CORRECTION: _t(
        {CHEMISTRY}, [C.UNDER_TESTING_REVIEW], {CHEMISTRY}, {CHEMISTRY}
    ),
    C.UNDER_ADMIN_REVIEW: _t(
        {ADMIN, SYSTEMADMIN},
        [C.ADMIN_NEEDS_CORRECTION, C.ADMIN_REJECTED, C.RECEIVED_BY_FRONTDESK],
        {ADMIN},
        {FRONTDESK},
    ),
    C.ADMIN_NEEDS_CORRECTION: _t({QA}, [C.UNDER_QA_REVIEW], {QA}, {QA}),
    # Release to client; front desk only routes, admin keeps the pen
    C.RECEIVED_BY_FRONTDESK: _t(
        {FRONTDESK},
        [C.UNDER_CLIENT_REVIEW, C.FRONTDESK_ON_HOLD],
        {ADMIN},
        {CLIENT},
    ),
    C.FRONTDESK_ON_HOLD: _t(
        {FRONTDESK}, [C.RECEIVED_BY_FRONTDESK], {ADMIN}, {FRONTDESK}
    ),
    C.UNDER_CLIENT_REVIEW: _t(
        {CLIENT},
        [C.CLIENT_NEEDS_CORRECTION, C.APPROVED],
        {ADMIN},
        {CHEMISTRY},
    ),
    C.CLIENT_NEEDS_CORRECTION: _t(
        {CHEMISTRY},
        [C.UNDER_RESUBMISSION_TESTING_REVIEW],
        {CHEMISTRY},
        {CHEMISTRY},
    ),
    C.UNDER_RESUBMISSION_TESTING_REVIEW: _t(
        {CHEMISTRY}, [C.RESUBMISSION_BY_TESTING], {CHEMISTRY}, {CLIENT}
    ),
    C.RESUBMISSION_BY_TESTING: _t(
        {CLIENT}, [C.UNDER_RESUBMISSION_ADMIN_REVIEW], {ADMIN}, {ADMIN}
    ),
    C.UNDER_RESUBMISSION_ADMIN_REVIEW: _t(
        {ADMIN, SYSTEMADMIN}, [C.RECEIVED_BY_FRONTDESK], {ADMIN}, {FRONTDESK}
    ),
    C.APPROVED: _t({ADMIN, SYSTEMADMIN}, [C.LOCKED], {ADMIN}),
    C.ADMIN_REJECTED: TERMINAL,
    C.LOCKED: TERMINAL,
}))
