"""
Report schema descriptors.

A ``ReportSchema`` binds one form's field list and field kinds to its status
graph and field access table, plus the lab department that numbers it and the
phase rules of the two-phase micro family. Every form type has exactly one
schema in ``SCHEMAS``; all lookups go through ``get_schema``.
"""

from dataclasses import dataclass
from itertools import combinations
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple

from lims_reports.exceptions import WorkflowDefinitionError
from lims_reports.models.enums import FormType, MicroPhase, ReportFamily, Role
from lims_reports.workflow import permissions, required, validation
from lims_reports.workflow.field_access import (
    CHEMISTRY_FIELD_ACCESS,
    GENERIC_FIELD_ACCESS,
    MICRO_FIELD_ACCESS,
    FieldAccessTable,
)
from lims_reports.workflow.phase import derive_phase
from lims_reports.workflow.transitions import (
    CHEMISTRY_GRAPH,
    GENERIC_GRAPH,
    MICRO_GRAPH,
    StatusGraph,
)
from lims_reports.workflow.validation import FieldKind

MICRO_PHASE_FIELDS = MappingProxyType({
    MicroPhase.PRELIM: (
        "testSopNo",
        "dateTested",
        "preliminaryResults",
        "preliminaryResultsDate",
        "tbc_gram",
        "tbc_result",
    ),
    MicroPhase.FINAL: ("tmy_gram", "tmy_result", "pathogens"),
})

PHASE_SENSITIVE_ROLES = frozenset({Role.MICRO})
PATHOGEN_RESULT_ROLES = frozenset({Role.MICRO, Role.ADMIN})
ACTIVE_RESULT_ROLES = frozenset({Role.CHEMISTRY, Role.ADMIN, Role.QA})

# Lab department codes leading the report number
MICRO_DEPARTMENT = "OM"
CHEMISTRY_DEPARTMENT = "BC"

FIELD_KINDS = MappingProxyType({
    "client": FieldKind.TEXT,
    "dateSent": FieldKind.DATE,
    "typeOfTest": FieldKind.TEXT,
    "sampleType": FieldKind.TEXT,
    "formulaNo": FieldKind.TEXT,
    "idNo": FieldKind.TEXT,
    "description": FieldKind.TEXT,
    "lotNo": FieldKind.TEXT,
    "manufactureDate": FieldKind.LENIENT_DATE,
    "samplingDate": FieldKind.LENIENT_DATE,
    "testSopNo": FieldKind.TEXT,
    "dateTested": FieldKind.DATE,
    "preliminaryResults": FieldKind.TEXT,
    "preliminaryResultsDate": FieldKind.DATE,
    "tbc_dilution": FieldKind.TEXT,
    "tbc_gram": FieldKind.TEXT,
    "tbc_result": FieldKind.TEXT,
    "tbc_spec": FieldKind.TEXT,
    "tmy_dilution": FieldKind.TEXT,
    "tmy_gram": FieldKind.TEXT,
    "tmy_result": FieldKind.TEXT,
    "tmy_spec": FieldKind.TEXT,
    "pathogens": FieldKind.PATHOGENS,
    "comments": FieldKind.TEXT,
    "testedBy": FieldKind.TEXT,
    "testedDate": FieldKind.DATE,
    "dateCompleted": FieldKind.DATE,
    "reviewedBy": FieldKind.TEXT,
    "reviewedDate": FieldKind.DATE,
    # Chemistry form
    "sampleDescription": FieldKind.TEXT,
    "testTypes": FieldKind.LIST,
    "sampleCollected": FieldKind.TEXT,
    "lotBatchNo": FieldKind.TEXT,
    "formulaId": FieldKind.TEXT,
    "sampleSize": FieldKind.TEXT,
    "numberOfActives": FieldKind.TEXT,
    "sampleTypes": FieldKind.LIST,
    "dateReceived": FieldKind.DATE,
    "actives": FieldKind.ACTIVES,
})

# Changing any of these needs a recorded reason
CRITICAL_FIELDS = frozenset({
    "dateCompleted",
    "reviewedBy",
    "reviewedDate",
    "testedBy",
    "testedDate",
    "tbc_result",
    "tmy_result",
})


@dataclass(frozen=True, eq=False)
class ReportSchema:
    """Static description of one report form."""

    form_type: FormType
    family: ReportFamily
    fields: Tuple[str, ...]
    kinds: Mapping[str, str]
    graph: StatusGraph
    access: FieldAccessTable
    phase_fields: Mapping[MicroPhase, Tuple[str, ...]]
    phase_sensitive_roles: FrozenSet[Role]
    pathogen_result_roles: FrozenSet[Role]
    department: str
    active_result_roles: FrozenSet[Role] = frozenset()

    @property
    def initial_status(self):
        return self.graph.status_enum.DRAFT

    def coerce_status(self, status):
        return self.graph.coerce(status)

    def derive_phase(self, status) -> Optional[MicroPhase]:
        """Phase implied by ``status``; always None outside the two-phase family."""
        if self.family != ReportFamily.TWO_PHASE or status is None:
            return None
        return derive_phase(self.graph.coerce(status))

    def resolve_required(self, role, required_override=None, phase=None, status=None) -> Tuple[str, ...]:
        return required.resolve_required(
            self, role, required_override=required_override, phase=phase, status=status
        )

    def validate(self, role, values, required_override=None, phase=None, status=None):
        return validation.validate(
            self,
            role,
            values,
            required_override=required_override,
            phase=phase,
            status=status,
        )

    def can_transition(self, role, from_status, to_status) -> bool:
        return self.graph.can_transition(role, from_status, to_status)

    def check_transition(self, role, from_status, to_status):
        return self.graph.check_transition(role, from_status, to_status)

    def is_editable(self, role, status) -> bool:
        return self.graph.is_editable(role, status)

    def fields_writable_by(self, role) -> Tuple[str, ...]:
        return self.access.fields_writable_by(role, self.fields)

    def can_edit(self, role, status, field_key: str) -> bool:
        return permissions.can_edit(self, role, status, field_key)

    def writable_fields(self, role, status) -> Tuple[str, ...]:
        return permissions.writable_fields(self, role, status)

    def split_writable(self, role, status, field_keys: Iterable[str]):
        return permissions.split_writable(self, role, status, field_keys)

    def check_writable(self, role, status, field_keys: Iterable[str]):
        return permissions.check_writable(self, role, status, field_keys)

    def can_show_update(self, role, status, fields_to_consider=None) -> bool:
        return permissions.can_show_update(self, role, status, fields_to_consider)


def _check_schema(schema: ReportSchema) -> ReportSchema:
    """Cross-check a schema's graph against its field access table.

    Raises:
        WorkflowDefinitionError: If a status editor has nothing to write, two
            editors of one status share a field, or a phase list names a field
            the form does not have
    """
    problems = []
    known = set(schema.fields)

    for key in schema.fields:
        if key not in schema.kinds:
            problems.append(f"field {key!r} has no kind")
    for phase, keys in schema.phase_fields.items():
        for key in keys:
            if key not in known:
                problems.append(f"{phase.value} field {key!r} is not on the form")

    for status in schema.graph.statuses:
        editors = sorted(schema.graph.editors(status), key=lambda r: r.value)
        for role in editors:
            if not schema.fields_writable_by(role):
                problems.append(f"{status.value}: editor {role.value} has no writable fields")
        for first, second in combinations(editors, 2):
            shared = set(schema.fields_writable_by(first)) & set(schema.fields_writable_by(second))
            if shared:
                problems.append(
                    f"{status.value}: {first.value} and {second.value} both write "
                    + ", ".join(sorted(shared))
                )

    if problems:
        raise WorkflowDefinitionError(
            f"{schema.form_type.value} schema is inconsistent: " + "; ".join(problems)
        )
    return schema


_INTAKE_HEAD = ("client", "dateSent", "typeOfTest", "sampleType")
_TESTING = ("testSopNo", "dateTested", "preliminaryResults", "preliminaryResultsDate")
_SIGN_OFF = (
    "comments",
    "testedBy",
    "testedDate",
    "dateCompleted",
    "reviewedBy",
    "reviewedDate",
)

STANDARD_FIELDS = (
    _INTAKE_HEAD
    + ("formulaNo", "description", "lotNo", "manufactureDate")
    + _TESTING
    + ("tbc_gram", "tbc_result", "tbc_spec", "tmy_gram", "tmy_result", "tmy_spec")
    + ("pathogens",)
    + _SIGN_OFF
)

_MICRO_COUNTS = (
    "tbc_dilution",
    "tbc_gram",
    "tbc_result",
    "tbc_spec",
    "tmy_dilution",
    "tmy_gram",
    "tmy_result",
    "tmy_spec",
)

MICRO_MIX_FIELDS = (
    _INTAKE_HEAD
    + ("formulaNo", "description", "lotNo", "manufactureDate")
    + _TESTING
    + _MICRO_COUNTS
    + ("pathogens",)
    + _SIGN_OFF
)

MICRO_MIX_WATER_FIELDS = (
    _INTAKE_HEAD
    + ("idNo", "description", "lotNo", "samplingDate")
    + _TESTING
    + _MICRO_COUNTS
    + ("pathogens",)
    + _SIGN_OFF
)

CHEMISTRY_MIX_FIELDS = (
    ("client", "dateSent", "sampleDescription", "testTypes", "sampleCollected")
    + ("lotBatchNo", "manufactureDate", "formulaId", "sampleSize")
    + ("numberOfActives", "sampleTypes", "dateReceived", "actives")
    + _SIGN_OFF
)


def _two_phase(form_type: FormType, fields: Tuple[str, ...]) -> ReportSchema:
    return ReportSchema(
        form_type=form_type,
        family=ReportFamily.TWO_PHASE,
        fields=fields,
        kinds=FIELD_KINDS,
        graph=MICRO_GRAPH,
        access=MICRO_FIELD_ACCESS,
        phase_fields=MICRO_PHASE_FIELDS,
        phase_sensitive_roles=PHASE_SENSITIVE_ROLES,
        pathogen_result_roles=PATHOGEN_RESULT_ROLES,
        department=MICRO_DEPARTMENT,
    )


SCHEMAS = MappingProxyType({
    FormType.STANDARD: _check_schema(ReportSchema(
        form_type=FormType.STANDARD,
        family=ReportFamily.GENERIC,
        fields=STANDARD_FIELDS,
        kinds=FIELD_KINDS,
        graph=GENERIC_GRAPH,
        access=GENERIC_FIELD_ACCESS,
        phase_fields=MappingProxyType({}),
        phase_sensitive_roles=frozenset(),
        pathogen_result_roles=PATHOGEN_RESULT_ROLES,
        department=MICRO_DEPARTMENT,
    )),
    FormType.MICRO_MIX: _check_schema(_two_phase(FormType.MICRO_MIX, MICRO_MIX_FIELDS)),
    FormType.MICRO_MIX_WATER: _check_schema(
        _two_phase(FormType.MICRO_MIX_WATER, MICRO_MIX_WATER_FIELDS)
    ),
    FormType.CHEMISTRY_MIX: _check_schema(ReportSchema(
        form_type=FormType.CHEMISTRY_MIX,
        family=ReportFamily.GENERIC,
        fields=CHEMISTRY_MIX_FIELDS,
        kinds=FIELD_KINDS,
        graph=CHEMISTRY_GRAPH,
        access=CHEMISTRY_FIELD_ACCESS,
        phase_fields=MappingProxyType({}),
        phase_sensitive_roles=frozenset(),
        pathogen_result_roles=frozenset(),
        department=CHEMISTRY_DEPARTMENT,
        active_result_roles=ACTIVE_RESULT_ROLES,
    )),
})

if set(SCHEMAS) != set(FormType):
    raise WorkflowDefinitionError("Every form type needs a report schema")


def get_schema(form_type) -> ReportSchema:
    """Schema of a form type given as a member or a string (any case)."""
    if not isinstance(form_type, FormType):
        form_type = FormType(str(getattr(form_type, "value", form_type)).strip().upper())
    return SCHEMAS[form_type]
