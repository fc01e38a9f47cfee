"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lims_reports.database import Base, make_engine
from lims_reports.models.enums import FormType, Role
from lims_reports.services.report_service import report_service

import lims_reports.models  # noqa: F401 register models


@pytest.fixture(scope="function")
def test_db():
    """Create a test database session."""
    # Use in-memory SQLite for tests
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(tmp_path):
    """Session factory on a file database, for tests that need two sessions or threads."""
    engine = make_engine(f"sqlite:///{tmp_path / 'reports.db'}", echo=False)
    Base.metadata.create_all(engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def client_values():
    """Everything a client fills on the standard form."""
    return {
        "client": "Acme Labs",
        "dateSent": "2026-01-12",
        "typeOfTest": "Micro",
        "sampleType": "Cream",
        "formulaNo": "F-100",
        "description": "Face cream",
        "lotNo": "L-42",
        "manufactureDate": "NA",
        "tbc_spec": "<100",
        "tmy_spec": "<10",
        "pathogens": [{"key": "E_COLI", "checked": True, "result": None}],
    }


@pytest.fixture
def prelim_values():
    """Preliminary testing results on a micro form."""
    return {
        "testSopNo": "SOP-7",
        "dateTested": "2026-01-14",
        "preliminaryResults": "No growth at 48h",
        "preliminaryResultsDate": "2026-01-16",
        "tbc_gram": "GPR",
        "tbc_result": "<10",
    }


@pytest.fixture
def advance(test_db):
    """Walk a stored report through ``(role, status)`` steps."""

    def _advance(report, *steps):
        for role, status in steps:
            report = report_service.change_status(
                test_db,
                report.id,
                role,
                status,
                expected_version=report.version,
                reason="test step",
            )
        return report

    return _advance


@pytest.fixture
def standard_report(test_db):
    """A standard-form draft created by a client."""
    return report_service.create_draft(
        test_db, FormType.STANDARD, Role.CLIENT, "acme", values={"client": "Acme Labs"}, user_id=7
    )


@pytest.fixture
def micro_report(test_db):
    """A micro mix draft created by a client."""
    return report_service.create_draft(
        test_db, FormType.MICRO_MIX, Role.CLIENT, "acme", user_id=7
    )


@pytest.fixture
def micro_in_prelim(micro_report, advance):
    """A micro mix report that has reached preliminary testing."""
    return advance(
        micro_report,
        (Role.CLIENT, "SUBMITTED_BY_CLIENT"),
        (Role.FRONTDESK, "UNDER_PRELIMINARY_TESTING_REVIEW"),
    )


@pytest.fixture
def standard_in_testing(standard_report, advance):
    """A standard report under testing review."""
    return advance(
        standard_report,
        (Role.CLIENT, "SUBMITTED_BY_CLIENT"),
        (Role.FRONTDESK, "RECEIVED_BY_FRONTDESK"),
        (Role.FRONTDESK, "UNDER_TESTING_REVIEW"),
    )


@pytest.fixture
def chemistry_report(test_db):
    """A chemistry mix draft created by a client."""
    return report_service.create_draft(
        test_db, FormType.CHEMISTRY_MIX, Role.CLIENT, "acme", values={"client": "Acme Labs"}, user_id=7
    )


@pytest.fixture
def chemistry_in_testing(chemistry_report, advance):
    """A chemistry report the lab has started testing."""
    return advance(
        chemistry_report,
        (Role.CLIENT, "SUBMITTED_BY_CLIENT"),
        (Role.CHEMISTRY, "UNDER_TESTING_REVIEW"),
    )
