"""
Report lifecycle rules: status graphs, field access, phases, required fields,
validation and the edit-permission gate.

Everything here is pure and built once at import; callers usually start from
``get_schema(form_type)``.
"""

from lims_reports.workflow.field_access import (
    CHEMISTRY_FIELD_ACCESS,
    GENERIC_FIELD_ACCESS,
    MICRO_FIELD_ACCESS,
    WILDCARD,
    FieldAccessTable,
)
from lims_reports.workflow.forms import (
    CRITICAL_FIELDS,
    MICRO_PHASE_FIELDS,
    SCHEMAS,
    ReportSchema,
    get_schema,
)
from lims_reports.workflow.permissions import (
    can_edit,
    can_show_update,
    check_writable,
    split_writable,
    writable_fields,
)
from lims_reports.workflow.phase import FINAL_STATUSES, PRELIM_STATUSES, derive_phase
from lims_reports.workflow.required import resolve_required
from lims_reports.workflow.transitions import (
    CHEMISTRY_GRAPH,
    GENERIC_GRAPH,
    MICRO_GRAPH,
    StatusGraph,
    Transition,
)
from lims_reports.workflow.validation import FieldKind, ValidationResult, validate

__all__ = [
    "CHEMISTRY_FIELD_ACCESS",
    "CHEMISTRY_GRAPH",
    "CRITICAL_FIELDS",
    "FINAL_STATUSES",
    "GENERIC_FIELD_ACCESS",
    "GENERIC_GRAPH",
    "MICRO_FIELD_ACCESS",
    "MICRO_GRAPH",
    "MICRO_PHASE_FIELDS",
    "PRELIM_STATUSES",
    "SCHEMAS",
    "WILDCARD",
    "FieldAccessTable",
    "FieldKind",
    "ReportSchema",
    "StatusGraph",
    "Transition",
    "ValidationResult",
    "can_edit",
    "can_show_update",
    "check_writable",
    "derive_phase",
    "get_schema",
    "resolve_required",
    "split_writable",
    "validate",
    "writable_fields",
]
