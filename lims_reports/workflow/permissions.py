"""Edit-permission gate: may a role write a field while a report sits in a status."""

from typing import Iterable, Optional, Tuple

from lims_reports.exceptions import FieldNotWritable
from lims_reports.models.enums import Role


def writable_fields(schema, role, status) -> Tuple[str, ...]:
    """Fields ``role`` may write in ``status`` (empty when not an editor there)."""
    if not schema.graph.is_editable(role, status):
        return ()
    return schema.access.fields_writable_by(role, schema.fields)


def can_edit(schema, role, status, field_key: str) -> bool:
    """Both the status grants edit rights and the role's table entry holds the field."""
    return field_key in writable_fields(schema, role, status)


def split_writable(schema, role, status, field_keys: Iterable[str]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Partition ``field_keys`` into ``(allowed, denied)``, keeping input order."""
    writable = set(writable_fields(schema, role, status))
    allowed, denied = [], []
    for key in field_keys:
        (allowed if key in writable else denied).append(key)
    return tuple(allowed), tuple(denied)


def check_writable(schema, role, status, field_keys: Iterable[str]) -> Tuple[str, ...]:
    """
    Require every key to be writable.

    Returns:
        The keys, in order

    Raises:
        FieldNotWritable: Listing every denied key
    """
    allowed, denied = split_writable(schema, role, status, field_keys)
    if denied:
        raise FieldNotWritable(Role.parse(role), schema.graph.coerce(status), denied)
    return allowed


def can_show_update(schema, role, status, fields_to_consider: Optional[Iterable[str]] = None) -> bool:
    """Whether an "Update" control makes sense: at least one considered field is writable."""
    if not role or not status:
        return False
    writable = writable_fields(schema, role, status)
    if not writable:
        return False
    if fields_to_consider is None:
        return True
    return any(key in writable for key in fields_to_consider)
