"""
Completeness validation of report values.

One engine serves every form: the report schema descriptor supplies the field
kinds, the phase lists and the roles whose pathogen and active results are
enforced.
Missing fields are reported in a ``ValidationResult``; nothing is raised.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from lims_reports.models.enums import MicroPhase, Role
from lims_reports.workflow.required import coerce_phase, resolve_required

REQUIRED_MESSAGE = "Required"
PATHOGEN_RESULTS = frozenset({"Absent", "Present"})
# Per checked active row: what the client supplies, then what the lab records
ACTIVE_REQUEST_KEYS = ("formulaContent",)
ACTIVE_RESULT_KEYS = ("sopNo", "result", "dateTestedInitial")


class FieldKind:
    """Emptiness predicate families."""

    TEXT = "text"
    DATE = "date"
    LENIENT_DATE = "lenient_date"
    LIST = "list"
    PATHOGENS = "pathogens"
    ACTIVES = "actives"


@dataclass(frozen=True)
class ValidationResult:
    """Ordered ``field_key -> "Required"`` map of one validation pass."""

    errors: Mapping[str, str]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> Optional[str]:
        """Field the caller should focus first (resolver order)."""
        return next(iter(self.errors), None)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "errors": dict(self.errors), "firstError": self.first_error}


def is_blank_text(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def is_blank_date(value) -> bool:
    return value is None or value == ""


def _row_value(row, key):
    if hasattr(row, "model_dump"):
        row = row.model_dump(by_alias=True)
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def pathogens_missing(rows: Optional[Iterable], role: Role, phase: Optional[MicroPhase], result_roles) -> bool:
    """Checked pathogen rows lack a definitive result.

    Only enforced for ``result_roles`` in the FINAL phase; a checklist with no
    checked rows is never an error.
    """
    checked = [row for row in rows or () if _row_value(row, "checked")]
    if not checked:
        return False
    if role not in result_roles or phase != MicroPhase.FINAL:
        return False
    return any(_row_value(row, "result") not in PATHOGEN_RESULTS for row in checked)


def actives_missing(rows: Optional[Iterable], role: Role, result_roles) -> bool:
    """Active-ingredient rows are incomplete for ``role``.

    A client must check at least one active and give its formula content;
    ``result_roles`` must record SOP, result and test date on every checked row.
    """
    checked = [row for row in rows or () if _row_value(row, "checked")]
    if role == Role.CLIENT:
        if not checked:
            return True
        keys = ACTIVE_REQUEST_KEYS
    elif role in result_roles:
        keys = ACTIVE_RESULT_KEYS
    else:
        return False
    return any(is_blank_text(_row_value(row, key)) for row in checked for key in keys)


def is_blank_list(value) -> bool:
    if value is None or isinstance(value, str):
        return is_blank_text(value)
    return not any(not is_blank_text(item) for item in value)


def is_missing(
    kind: Optional[str],
    value,
    role: Role,
    phase: Optional[MicroPhase],
    result_roles=frozenset(),
    active_roles=frozenset(),
) -> bool:
    if kind == FieldKind.TEXT:
        return is_blank_text(value)
    if kind == FieldKind.DATE:
        return is_blank_date(value)
    if kind == FieldKind.LIST:
        return is_blank_list(value)
    if kind == FieldKind.PATHOGENS:
        return pathogens_missing(value, role, phase, result_roles)
    if kind == FieldKind.ACTIVES:
        return actives_missing(value, role, active_roles)
    # Lenient dates accept blank, "NA" and unparsed text; unknown keys are never flagged
    return False


def _as_mapping(values) -> Mapping:
    if values is None:
        return {}
    if hasattr(values, "model_dump"):
        return values.model_dump(by_alias=True)
    return values


def validate(
    schema,
    role,
    values,
    required_override: Optional[Iterable[str]] = None,
    phase=None,
    status=None,
) -> ValidationResult:
    """
    Check that every required field of ``role`` is filled.

    Args:
        schema: Report schema descriptor of the form
        role: Acting role
        values: Mapping (or pydantic model) of field values
        required_override: Exact required list chosen by the caller
        phase: Explicit testing phase; otherwise derived from ``status``
        status: Current report status

    Returns:
        ValidationResult with errors ordered by the required list
    """
    role = Role.parse(role)
    values = _as_mapping(values)
    effective_phase = coerce_phase(phase)
    if effective_phase is None:
        effective_phase = schema.derive_phase(status)

    required = resolve_required(
        schema, role, required_override=required_override, phase=phase, status=status
    )

    errors = {}
    for key in required:
        if key in errors:
            continue
        if is_missing(
            schema.kinds.get(key),
            values.get(key),
            role,
            effective_phase,
            schema.pathogen_result_roles,
            schema.active_result_roles,
        ):
            errors[key] = REQUIRED_MESSAGE
    return ValidationResult(errors=MappingProxyType(errors))
