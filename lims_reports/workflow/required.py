"""Required-field resolution for a role on a report form."""

from typing import Iterable, Optional, Tuple

from lims_reports.models.enums import MicroPhase, Role


def coerce_phase(phase) -> Optional[MicroPhase]:
    if phase is None or phase == "":
        return None
    if isinstance(phase, MicroPhase):
        return phase
    return MicroPhase(str(getattr(phase, "value", phase)).strip().upper())


def resolve_required(
    schema,
    role,
    required_override: Optional[Iterable[str]] = None,
    phase=None,
    status=None,
) -> Tuple[str, ...]:
    """
    Field keys that must be filled for ``role`` to save the form.

    First match wins:
        1. ``required_override`` when supplied, used verbatim
        2. a phase-sensitive role with an explicit ``phase`` gets that phase's list
        3. a phase-sensitive role with a ``status`` whose phase is known gets
           that phase's list
        4. otherwise the role's own Field Access Table entry, without the
           wildcard and limited to the form's fields

    Args:
        schema: Report schema descriptor of the form
        role: Acting role
        required_override: Exact list chosen by the caller
        phase: Explicit testing phase
        status: Current report status

    Returns:
        Ordered tuple of required field keys
    """
    if required_override is not None:
        return tuple(required_override)

    role = Role.parse(role)
    if role in schema.phase_sensitive_roles:
        explicit = coerce_phase(phase)
        if explicit is not None:
            return schema.phase_fields[explicit]
        derived = schema.derive_phase(status)
        if derived is not None:
            return schema.phase_fields[derived]

    return schema.access.default_required(role, schema.fields)
