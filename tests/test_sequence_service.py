"""Tests for the running number counters."""

import pytest
from sqlalchemy.exc import IntegrityError

from lims_reports.models import NumberSequence
from lims_reports.services.sequence_service import client_scope, department_scope, sequence_service


class TestScopes:
    def test_client_scope_is_normalized(self):
        assert client_scope(" acme ") == "client:ACME"

    def test_department_scope(self):
        assert department_scope("bc") == "department:BC"


class TestNextValue:
    """Tests for SequenceService.next_value."""

    def test_first_value_is_one(self, test_db):
        assert sequence_service.next_value(test_db, "client:ACME") == 1
        assert test_db.query(NumberSequence).count() == 1

    def test_values_increment(self, test_db):
        values = [sequence_service.next_value(test_db, "client:ACME") for _ in range(3)]
        assert values == [1, 2, 3]

    def test_scopes_are_independent(self, test_db):
        sequence_service.next_value(test_db, "client:ACME")
        sequence_service.next_value(test_db, "client:ACME")

        assert sequence_service.next_value(test_db, "department:OM") == 1
        assert sequence_service.current_value(test_db, "client:ACME") == 2

    def test_current_value_of_unknown_scope(self, test_db):
        assert sequence_service.current_value(test_db, "client:NOBODY") == 0

    def test_rollback_returns_the_number(self, test_db):
        sequence_service.next_value(test_db, "client:ACME")
        test_db.commit()
        sequence_service.next_value(test_db, "client:ACME")
        test_db.rollback()

        assert sequence_service.next_value(test_db, "client:ACME") == 2

    def test_duplicate_scope_is_refused(self, test_db):
        """The unique scope is what turns a first-insert race into an IntegrityError."""
        test_db.add(NumberSequence(scope="client:ACME", last_number=4))
        test_db.add(NumberSequence(scope="client:ACME", last_number=1))

        with pytest.raises(IntegrityError):
            test_db.flush()
