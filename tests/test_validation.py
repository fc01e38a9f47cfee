"""Tests for required-field resolution and completeness validation."""

import pytest

from lims_reports.models.enums import FormType, MicroPhase, Role
from lims_reports.workflow import get_schema, resolve_required, validate
from lims_reports.workflow.forms import MICRO_PHASE_FIELDS

STANDARD = get_schema(FormType.STANDARD)
MICRO_MIX = get_schema(FormType.MICRO_MIX)
WATER = get_schema(FormType.MICRO_MIX_WATER)


# =============================================================================
# REQUIRED-FIELD RESOLVER
# =============================================================================

class TestResolveRequired:
    """Tests for resolver precedence."""

    def test_override_wins(self):
        """An explicit list is returned verbatim, even for MICRO with a phase."""
        assert resolve_required(
            MICRO_MIX, Role.MICRO, required_override=["lotNo"], phase=MicroPhase.FINAL
        ) == ("lotNo",)

    def test_explicit_phase_beats_status(self):
        """An explicit phase is preferred over the status-derived one."""
        required = resolve_required(
            MICRO_MIX, Role.MICRO, phase="FINAL", status="UNDER_PRELIMINARY_TESTING_REVIEW"
        )
        assert required == MICRO_PHASE_FIELDS[MicroPhase.FINAL]

    def test_status_derives_phase(self):
        """MICRO in a preliminary status gets the PRELIM list."""
        required = resolve_required(MICRO_MIX, Role.MICRO, status="PRELIMINARY_TESTING_ON_HOLD")
        assert required == MICRO_PHASE_FIELDS[MicroPhase.PRELIM]

    def test_phase_insensitive_status_falls_through(self):
        """Without a phase MICRO gets its table entry."""
        required = resolve_required(MICRO_MIX, Role.MICRO, status="UNDER_QA_FINAL_REVIEW")
        assert required == MICRO_MIX.access.default_required(Role.MICRO, MICRO_MIX.fields)
        assert "tbc_dilution" in required

    def test_micro_phase_lists_differ(self):
        """Phase sensitivity actually changes MICRO's required set."""
        prelim = resolve_required(MICRO_MIX, Role.MICRO, status="UNDER_PRELIMINARY_TESTING_REVIEW")
        final = resolve_required(MICRO_MIX, Role.MICRO, status="UNDER_FINAL_TESTING_REVIEW")
        assert set(prelim) != set(final)

    def test_only_micro_is_phase_sensitive(self):
        """QA gets the same list in every phase."""
        prelim = resolve_required(MICRO_MIX, Role.QA, status="UNDER_PRELIMINARY_TESTING_REVIEW")
        final = resolve_required(MICRO_MIX, Role.QA, status="UNDER_FINAL_TESTING_REVIEW")
        assert prelim == final == ("dateCompleted", "reviewedBy", "reviewedDate")

    def test_generic_form_ignores_phase_of_status(self):
        """The one-phase form has no phase-sensitive roles."""
        required = resolve_required(STANDARD, Role.MICRO, status="UNDER_TESTING_REVIEW")
        assert "tmy_result" in required and "testSopNo" in required

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.SYSTEMADMIN, Role.CHEMISTRY])
    def test_roles_without_stake_require_nothing(self, role):
        """Wildcard or empty entries yield an empty list."""
        assert resolve_required(STANDARD, role) == ()

    def test_water_form_list(self):
        """Fields missing from a form are not required on it."""
        required = resolve_required(WATER, Role.FRONTDESK)
        assert "idNo" in required
        assert "formulaNo" not in required


# =============================================================================
# VALIDATION ENGINE
# =============================================================================

class TestValidate:
    """Tests for the completeness check."""

    def test_client_missing_description_and_lot(self, client_values):
        """Every missing field is reported at once."""
        values = dict(client_values)
        del values["description"]
        values["lotNo"] = "   "

        result = validate(STANDARD, Role.CLIENT, values, status="DRAFT")

        assert result.ok is False
        assert dict(result.errors) == {"description": "Required", "lotNo": "Required"}

    def test_errors_follow_resolver_order(self, client_values):
        """first_error is the earliest missing field in the required list."""
        values = dict(client_values, lotNo="", client="")

        result = STANDARD.validate(Role.CLIENT, values)

        assert list(result.errors) == ["client", "lotNo"]
        assert result.first_error == "client"

    def test_micro_mix_client_draft(self, client_values):
        """The same check on the two-phase form."""
        values = dict(client_values)
        del values["description"]
        del values["lotNo"]

        result = MICRO_MIX.validate(Role.CLIENT, values, status="DRAFT")

        assert dict(result.errors) == {"description": "Required", "lotNo": "Required"}

    def test_final_fields_not_required_in_prelim(self, prelim_values):
        """MICRO may leave tmy_result empty during the preliminary pass."""
        result = MICRO_MIX.validate(Role.MICRO, prelim_values, status="UNDER_PRELIMINARY_TESTING_REVIEW")

        assert result.ok is True
        assert dict(result.errors) == {}
        assert result.first_error is None

    def test_final_fields_required_in_final(self, prelim_values):
        """The same values fail once the report is in the final pass."""
        result = MICRO_MIX.validate(Role.MICRO, prelim_values, status="UNDER_FINAL_TESTING_REVIEW")

        assert list(result.errors) == ["tmy_gram", "tmy_result"]

    def test_zero_required_fields_is_ok(self):
        """SYSTEMADMIN has no stake in any field."""
        result = validate(STANDARD, Role.SYSTEMADMIN, {})

        assert result.ok is True
        assert result.to_dict() == {"ok": True, "errors": {}, "firstError": None}

    def test_none_values(self):
        """Missing values mapping is treated as empty."""
        result = validate(STANDARD, Role.QA, None)
        assert list(result.errors) == ["dateCompleted", "reviewedBy", "reviewedDate"]

    def test_idempotent(self, client_values):
        """Two passes over the same input give the same result."""
        values = dict(client_values, lotNo="")

        first = STANDARD.validate(Role.CLIENT, values)
        second = STANDARD.validate(Role.CLIENT, values)

        assert dict(first.errors) == dict(second.errors)
        assert first.to_dict() == second.to_dict()

    def test_date_predicate(self):
        """Dates are missing only when absent or empty."""
        values = {"dateCompleted": "", "reviewedBy": "Q. A.", "reviewedDate": None}

        result = STANDARD.validate(Role.QA, values)

        assert list(result.errors) == ["dateCompleted", "reviewedDate"]

    @pytest.mark.parametrize("value", [None, "", "NA", "not a date", "2026-13-45"])
    def test_manufacture_date_is_lenient(self, client_values, value):
        """Blank, NA and malformed manufacture dates are all accepted."""
        values = dict(client_values, manufactureDate=value)
        assert STANDARD.validate(Role.CLIENT, values).ok

    @pytest.mark.parametrize("value", [None, "", "NA", "yesterday"])
    def test_sampling_date_is_lenient(self, value):
        """The water form's sampling date follows the same policy."""
        values = {
            "client": "Acme",
            "dateSent": "2026-01-12",
            "typeOfTest": "Micro",
            "sampleType": "Water",
            "idNo": "W-1",
            "description": "Tap",
            "lotNo": "L-1",
            "samplingDate": value,
        }
        assert WATER.validate(Role.FRONTDESK, values).ok

    def test_override_list(self):
        """A caller-supplied list is checked as given."""
        result = STANDARD.validate(Role.CLIENT, {"lotNo": "L-1"}, required_override=["lotNo", "description"])
        assert list(result.errors) == ["description"]

    def test_accepts_pydantic_values(self):
        """Pydantic models are dumped before checking."""
        from pydantic import BaseModel

        class QASignOff(BaseModel):
            dateCompleted: str = "2026-02-01"
            reviewedBy: str = ""
            reviewedDate: str = "2026-02-01"

        result = STANDARD.validate(Role.QA, QASignOff())
        assert list(result.errors) == ["reviewedBy"]


class TestPathogens:
    """Tests for the conditional pathogen checklist rule."""

    def final_values(self, pathogens):
        return {"tmy_gram": "None", "tmy_result": "<10", "pathogens": pathogens}

    def test_unchecked_checklist_is_never_an_error(self):
        rows = [{"key": "E_COLI", "checked": False, "result": None}]
        assert MICRO_MIX.validate(Role.MICRO, self.final_values(rows), phase="FINAL").ok

    def test_empty_checklist_is_never_an_error(self):
        assert MICRO_MIX.validate(Role.MICRO, self.final_values([]), phase="FINAL").ok
        assert MICRO_MIX.validate(Role.MICRO, self.final_values(None), phase="FINAL").ok

    def test_checked_row_needs_result_in_final(self):
        """MICRO must record Absent/Present for every checked row."""
        rows = [
            {"key": "E_COLI", "checked": True, "result": "Absent"},
            {"key": "SALMONELLA", "checked": True, "result": ""},
        ]

        result = MICRO_MIX.validate(Role.MICRO, self.final_values(rows), status="UNDER_FINAL_TESTING_REVIEW")

        assert dict(result.errors) == {"pathogens": "Required"}

    def test_results_complete(self):
        rows = [
            {"key": "E_COLI", "checked": True, "result": "Absent"},
            {"key": "S_AUREUS", "checked": True, "result": "Present"},
        ]
        assert MICRO_MIX.validate(Role.MICRO, self.final_values(rows), phase=MicroPhase.FINAL).ok

    def test_not_enforced_in_prelim(self):
        """A checked row without result is fine before the final pass."""
        rows = [{"key": "E_COLI", "checked": True, "result": None}]
        result = MICRO_MIX.validate(
            Role.MICRO, {"pathogens": rows}, required_override=["pathogens"], phase="PRELIM"
        )
        assert result.ok

    def test_not_enforced_for_client(self, client_values):
        """The client only ticks rows; results come from the lab."""
        result = MICRO_MIX.validate(Role.CLIENT, client_values, phase="FINAL")
        assert result.ok

    def test_admin_enforced_in_final(self):
        """ADMIN is held to the same rule when the phase is FINAL."""
        rows = [{"key": "E_COLI", "checked": True, "result": None}]
        result = MICRO_MIX.validate(
            Role.ADMIN, {"pathogens": rows}, required_override=["pathogens"], status="FINAL_TESTING_ON_HOLD"
        )
        assert list(result.errors) == ["pathogens"]

    def test_pydantic_rows(self):
        """Rows may be PathogenRow models."""
        from lims_reports.schemas.report import PathogenRow

        rows = [PathogenRow(key="E_COLI", checked=True)]
        result = MICRO_MIX.validate(Role.MICRO, self.final_values(rows), phase="FINAL")
        assert list(result.errors) == ["pathogens"]


class TestActives:
    """Tests for the chemistry active-ingredient rows."""

    CHEMISTRY_MIX = get_schema(FormType.CHEMISTRY_MIX)

    def test_client_must_check_an_active(self):
        result = self.CHEMISTRY_MIX.validate(
            Role.CLIENT, {"actives": [{"key": "ZINC", "checked": False}]}, required_override=["actives"]
        )
        assert list(result.errors) == ["actives"]

    def test_client_gives_formula_content(self):
        rows = [
            {"key": "ZINC", "checked": True, "formulaContent": "2%"},
            {"key": "TITANIUM", "checked": True, "formulaContent": " "},
        ]
        result = self.CHEMISTRY_MIX.validate(Role.CLIENT, {"actives": rows}, required_override=["actives"])
        assert not result.ok

        rows[1]["formulaContent"] = "5%"
        assert self.CHEMISTRY_MIX.validate(Role.CLIENT, {"actives": rows}, required_override=["actives"]).ok

    def test_chemist_records_results_on_checked_rows(self):
        rows = [
            {"key": "ZINC", "checked": True, "sopNo": "SOP-7", "result": "1.9%", "dateTestedInitial": "2026-01-02"},
            {"key": "TITANIUM", "checked": True, "sopNo": "SOP-7", "result": None},
            {"key": "IRON", "checked": False},
        ]
        result = self.CHEMISTRY_MIX.validate(Role.CHEMISTRY, {"actives": rows}, required_override=["actives"])
        assert list(result.errors) == ["actives"]

        rows[1].update(result="4.8%", dateTestedInitial="2026-01-02")
        assert self.CHEMISTRY_MIX.validate(Role.CHEMISTRY, {"actives": rows}, required_override=["actives"]).ok

    def test_other_roles_not_held_to_rows(self):
        result = self.CHEMISTRY_MIX.validate(Role.FRONTDESK, {"actives": []}, required_override=["actives"])
        assert result.ok

    @pytest.mark.parametrize("value", [None, [], ["", "  "], ""])
    def test_blank_test_types(self, value):
        result = self.CHEMISTRY_MIX.validate(Role.CLIENT, {"testTypes": value}, required_override=["testTypes"])
        assert list(result.errors) == ["testTypes"]

    def test_test_types_filled(self):
        result = self.CHEMISTRY_MIX.validate(Role.CLIENT, {"testTypes": ["ID"]}, required_override=["testTypes"])
        assert result.ok

    def test_pydantic_rows(self):
        """Rows may be ActiveRow models, read by their wire names."""
        from lims_reports.schemas.report import ActiveRow

        rows = [ActiveRow(key="ZINC", checked=True, formulaContent="2%")]
        assert self.CHEMISTRY_MIX.validate(Role.CLIENT, {"actives": rows}, required_override=["actives"]).ok

        result = self.CHEMISTRY_MIX.validate(Role.CHEMISTRY, {"actives": rows}, required_override=["actives"])
        assert list(result.errors) == ["actives"]
