"""Tests for the logging setup."""

import json

import pytest

from lims_reports.models.enums import FormType, Role
from lims_reports.services.report_service import report_service
from lims_reports.utils.logger import NO_REPORT, logger, report_logger, setup_logger


@pytest.fixture
def log_file(tmp_path):
    """Route records to a plain-text file, restoring the default sinks afterwards."""
    path = tmp_path / "reports.log"
    setup_logger(level="INFO", log_file=str(path), serialize=False)
    yield path
    setup_logger()


def test_records_name_their_report(log_file):
    report_logger("ACME-20260001").info("moved")
    logger.info("unrelated")
    setup_logger()

    first, second = log_file.read_text().splitlines()
    assert "| ACME-20260001 |" in first
    assert f"| {NO_REPORT} |" in second


def test_level_filters_records(log_file):
    setup_logger(level="WARNING", log_file=str(log_file), serialize=False)
    logger.info("quiet")
    logger.warning("loud")
    setup_logger()

    assert log_file.read_text().count("\n") == 1
    assert "loud" in log_file.read_text()


def test_service_logs_carry_form_number(log_file, test_db):
    report = report_service.create_draft(test_db, FormType.STANDARD, Role.CLIENT, "acme")
    setup_logger()

    assert f"| {report.form_number} |" in log_file.read_text()


def test_json_lines(tmp_path):
    path = tmp_path / "reports.jsonl"
    setup_logger(level="INFO", log_file=str(path), serialize=True)
    try:
        report_logger("ACME-20260001").warning("refused")
    finally:
        setup_logger()

    record = json.loads(path.read_text().splitlines()[0])["record"]
    assert record["extra"]["report"] == "ACME-20260001"
    assert record["level"]["name"] == "WARNING"
    assert record["message"] == "refused"
