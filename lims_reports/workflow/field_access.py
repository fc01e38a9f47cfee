"""Role to writable-field tables for the report families."""

from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from lims_reports.models.enums import Role

WILDCARD = "*"


class FieldAccessTable:
    """Status-independent map of the field keys each role may write.

    The ``*`` wildcard stays unexpanded in the table and is resolved against
    the active form's field list at the point of use.
    """

    def __init__(self, name: str, entries: Mapping[Role, Iterable[str]]):
        self.name = name
        self._entries = MappingProxyType(
            {Role.parse(role): tuple(keys) for role, keys in entries.items()}
        )

    def __repr__(self):
        return f"<FieldAccessTable({self.name!r})>"

    def entry(self, role) -> Tuple[str, ...]:
        """Raw table entry for ``role`` (may contain the wildcard)."""
        return self._entries.get(Role.parse(role), ())

    def has_wildcard(self, role) -> bool:
        return WILDCARD in self.entry(role)

    def fields_writable_by(self, role, known_fields: Optional[Iterable[str]] = None) -> Tuple[str, ...]:
        """Field keys ``role`` may write.

        Args:
            role: Acting role
            known_fields: Field keys of the active form. The wildcard expands
                to this list; explicit entries are filtered to it.

        Returns:
            Ordered tuple of field keys (the wildcard marker itself is dropped)
        """
        entry = self.entry(role)
        if known_fields is None:
            return tuple(key for key in entry if key != WILDCARD)

        known = tuple(known_fields)
        if WILDCARD in entry:
            return known
        allowed = set(known)
        return tuple(key for key in entry if key in allowed)

    def default_required(self, role, known_fields: Optional[Iterable[str]] = None) -> Tuple[str, ...]:
        """Flat required list for ``role``: its explicit entry minus the wildcard."""
        keys = tuple(key for key in self.entry(role) if key != WILDCARD)
        if known_fields is None:
            return keys
        allowed = set(known_fields)
        return tuple(key for key in keys if key in allowed)

    def as_dict(self) -> Dict[str, list]:
        return {role.value: list(keys) for role, keys in self._entries.items()}


_GENERIC_INTAKE = (
    "client",
    "dateSent",
    "typeOfTest",
    "sampleType",
    "formulaNo",
    "description",
    "lotNo",
    "manufactureDate",
)

GENERIC_FIELD_ACCESS = FieldAccessTable("generic", {
    Role.SYSTEMADMIN: (),
    Role.ADMIN: (WILDCARD,),
    Role.FRONTDESK: _GENERIC_INTAKE,
    Role.MICRO: (
        "testSopNo",
        "dateTested",
        "preliminaryResults",
        "preliminaryResultsDate",
        "tbc_gram",
        "tbc_result",
        "tmy_gram",
        "tmy_result",
        "pathogens",
        "comments",
        "testedBy",
        "testedDate",
    ),
    Role.QA: ("dateCompleted", "reviewedBy", "reviewedDate"),
    Role.CLIENT: _GENERIC_INTAKE + ("tbc_spec", "tmy_spec", "pathogens"),
    Role.CHEMISTRY: (),
    Role.MC: (),
})

_MICRO_INTAKE = (
    "client",
    "dateSent",
    "typeOfTest",
    "sampleType",
    "formulaNo",
    "idNo",
    "description",
    "lotNo",
    "manufactureDate",
    "samplingDate",
)

MICRO_FIELD_ACCESS = FieldAccessTable("micro", {
    Role.SYSTEMADMIN: (),
    Role.ADMIN: (WILDCARD,),
    Role.FRONTDESK: _MICRO_INTAKE,
    Role.MICRO: (
        "testSopNo",
        "tbc_dilution",
        "tbc_gram",
        "tbc_result",
        "tmy_dilution",
        "tmy_gram",
        "tmy_result",
        "pathogens",
        "dateTested",
        "preliminaryResults",
        "preliminaryResultsDate",
        "comments",
        "testedBy",
        "testedDate",
    ),
    Role.QA: ("dateCompleted", "reviewedBy", "reviewedDate"),
    Role.CLIENT: _MICRO_INTAKE + ("tbc_spec", "tmy_spec", "pathogens"),
    Role.CHEMISTRY: (),
    Role.MC: (),
})

CHEMISTRY_FIELD_ACCESS = FieldAccessTable("chemistry", {
    Role.SYSTEMADMIN: (),
    Role.ADMIN: (WILDCARD,),
    Role.FRONTDESK: (),
    Role.CHEMISTRY: (
        "dateReceived",
        "actives",
        "comments",
        "testedBy",
        "testedDate",
    ),
    Role.QA: ("dateCompleted", "reviewedBy", "reviewedDate"),
    Role.CLIENT: (
        "client",
        "dateSent",
        "sampleDescription",
        "testTypes",
        "sampleCollected",
        "lotBatchNo",
        "manufactureDate",
        "formulaId",
        "sampleSize",
        "numberOfActives",
        "sampleTypes",
        "comments",
        "actives",
    ),
    Role.MICRO: (),
    Role.MC: (),
})
