import pytest

from pydantic import ValidationError

from hostel_ledger.models.base import OccupantStatus
from hostel_ledger.schemas.student import OccupantCreate
from hostel_ledger.services.base import ErrorCode


class TestOccupantService:
    """Tests for OccupantService"""

    def test_email_is_normalized(self, occupant_service):
        occupant = occupant_service.create_occupant(
            OccupantCreate(external_id="X-1", name="Ravi", email="Ravi.K@Example.COM")
        ).unwrap()

        assert occupant.email == "ravi.k@example.com"
        assert occupant.has_pending_fees is False

    def test_duplicate_external_id(self, make_occupant, occupant_service):
        existing = make_occupant()

        result = occupant_service.create_occupant(
            OccupantCreate(external_id=existing.external_id, name="Other", email="other@example.com")
        )

        assert result.error.code == ErrorCode.ALREADY_EXISTS
        assert result.error.field == "external_id"

    def test_duplicate_email(self, make_occupant, occupant_service):
        existing = make_occupant()

        result = occupant_service.create_occupant(
            OccupantCreate(external_id="X-2", name="Other", email=existing.email.upper())
        )

        assert result.error.field == "email"

    def test_initial_status_must_be_active_or_registered(self):
        with pytest.raises(ValidationError):
            OccupantCreate(external_id="X-3", name="N", email="n@example.com", status=OccupantStatus.INACTIVE)

    def test_list_by_status(self, make_occupant, occupant_service):
        make_occupant()
        registered = make_occupant(status=OccupantStatus.REGISTERED)

        result = occupant_service.list_occupants(OccupantStatus.REGISTERED)

        assert [o.id for o in result.data] == [registered.id]
