"""Schema validation tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from lims_reports.models.enums import CorrectionStatus, FormType, Role
from lims_reports.schemas.correction import (
    CorrectionItemCreate,
    CorrectionItemResponse,
    CreateCorrectionsRequest,
    ResolveCorrectionRequest,
)
from lims_reports.schemas.report import (
    ActiveRow,
    FieldUpdateRequest,
    PathogenRow,
    ReportCreate,
    ReportResponse,
    StatusChangeRequest,
    ValidationResponse,
)
from lims_reports.services.correction_service import correction_service
from lims_reports.workflow import get_schema


# =============================================================================
# CORRECTION SCHEMA TESTS
# =============================================================================

class TestCorrectionSchemas:
    """Test correction schema validation."""

    def test_item_accepts_camel_case(self):
        """Test wire names are accepted."""
        item = CorrectionItemCreate(**{"fieldKey": "lotNo", "message": " illegible ", "oldValue": "L-4"})

        assert item.field_key == "lotNo"
        assert item.message == "illegible"
        assert item.old_value == "L-4"

    def test_item_accepts_field_names(self):
        """Test python names are accepted too."""
        item = CorrectionItemCreate(field_key="client", message="typo")
        assert item.field_key == "client"
        assert "old_value" not in item.model_fields_set

    @pytest.mark.parametrize("data", [
        {"fieldKey": "", "message": "x"},
        {"fieldKey": "lotNo", "message": "   "},
        {"fieldKey": "lotNo"},
    ])
    def test_item_rejects_blank_or_missing(self, data):
        """Test items need both a field key and a message."""
        with pytest.raises(ValidationError):
            CorrectionItemCreate(**data)

    def test_request_needs_items(self):
        """Test an empty batch is refused."""
        with pytest.raises(ValidationError):
            CreateCorrectionsRequest(items=[])

    def test_request_with_target(self):
        request = CreateCorrectionsRequest(**{
            "items": [{"fieldKey": "lotNo", "message": "x"}],
            "targetStatus": "FRONTDESK_NEEDS_CORRECTION",
            "expectedVersion": 3,
        })

        assert request.target_status == "FRONTDESK_NEEDS_CORRECTION"
        assert request.expected_version == 3
        assert request.items[0].field_key == "lotNo"

    def test_resolve_request(self):
        request = ResolveCorrectionRequest(**{"resolutionNote": "fixed"})
        assert request.resolution_note == "fixed"
        assert ResolveCorrectionRequest().resolution_note is None

    def test_response_from_model(self, test_db, standard_report):
        """Test responses are built from ORM rows."""
        item = correction_service.create_corrections(
            test_db, standard_report.id, [{"fieldKey": "client", "message": "typo"}], Role.ADMIN
        )[0]

        response = CorrectionItemResponse.model_validate(item)

        assert response.field_key == "client"
        assert response.status == CorrectionStatus.OPEN
        assert response.requested_by_role == Role.ADMIN
        assert response.old_value == "Acme Labs"
        assert response.resolved_at is None


# =============================================================================
# REPORT SCHEMA TESTS
# =============================================================================

class TestReportSchemas:
    """Test report schema validation."""

    def test_report_create(self):
        request = ReportCreate(**{"formType": "MICRO_MIX", "clientCode": "ACME"})
        assert request.form_type == FormType.MICRO_MIX
        assert request.values == {}

    def test_report_create_unknown_form(self):
        with pytest.raises(ValidationError):
            ReportCreate(**{"formType": "MICRO_SWAB", "clientCode": "ACME"})

    def test_field_update_needs_values(self):
        with pytest.raises(ValidationError):
            FieldUpdateRequest(values={})

    def test_status_change(self):
        request = StatusChangeRequest(**{"status": "SUBMITTED_BY_CLIENT", "expectedVersion": 0})
        assert request.expected_version == 0

    def test_pathogen_row_defaults(self):
        row = PathogenRow(key="E_COLI")
        assert row.checked is False
        assert row.result is None

    def test_active_row_aliases(self):
        row = ActiveRow(**{"key": "ZINC", "checked": True, "formulaContent": "2%", "sopNo": "SOP-7"})

        assert row.formula_content == "2%"
        assert row.model_dump(by_alias=True)["sopNo"] == "SOP-7"

    def test_report_response_from_model(self, standard_report):
        response = ReportResponse.model_validate(standard_report)

        assert response.form_number == standard_report.form_number
        assert response.status == "DRAFT"
        assert response.version == 0
        assert response.field_values == {"client": "Acme Labs"}

    def test_validation_response_from_result(self):
        """Test the completeness result maps onto the response."""
        result = get_schema(FormType.STANDARD).validate(Role.QA, {"reviewedBy": "Q"})

        response = ValidationResponse.model_validate(result.to_dict())

        assert response.ok is False
        assert response.first_error == "dateCompleted"
        assert set(response.errors) == {"dateCompleted", "reviewedDate"}
        assert response.model_dump(by_alias=True)["firstError"] == "dateCompleted"
