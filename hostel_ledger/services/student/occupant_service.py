"""
Occupant registration and lookup.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import DuplicateKeyError
from hostel_ledger.models.base import OccupantStatus
from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.schemas.student import OccupantCreate
from hostel_ledger.services.base import BaseService, ServiceResult


class OccupantService(BaseService[Occupant, OccupantRepository]):
    """Create, fetch and list occupants."""

    def __init__(self, repository: OccupantRepository, db_session: Session):
        super().__init__(repository, db_session)

    def create_occupant(self, request: OccupantCreate) -> ServiceResult[Occupant]:
        """
        Register an occupant.

        External id and email are unique; a clash fails with ALREADY_EXISTS
        naming the field.
        """
        try:
            if self.repository.find_by_external_id(request.external_id):
                raise DuplicateKeyError("external_id", request.external_id)
            if self.repository.find_by_email(request.email):
                raise DuplicateKeyError("email", request.email)

            occupant = Occupant(
                external_id=request.external_id,
                name=request.name,
                email=request.email,
                phone=request.phone,
                enrollment_date=request.enrollment_date,
                status=request.status.value,
            )
            occupant = self.repository.create(occupant)

            self._log_operation(
                "Occupant created",
                occupant.id,
                {"external_id": occupant.external_id},
            )
            return ServiceResult.success(occupant, message="Occupant created successfully")
        except Exception as e:
            return self._handle_exception(e, "create occupant", request.external_id)

    def get_occupant(self, occupant_id: str) -> ServiceResult[Occupant]:
        try:
            return ServiceResult.success(self.repository.get_by_id(occupant_id))
        except Exception as e:
            return self._handle_exception(e, "get occupant", occupant_id)

    def list_occupants(self, status: Optional[OccupantStatus] = None) -> ServiceResult[List[Occupant]]:
        try:
            occupants = self.repository.list_occupants(status.value if status else None)
            return ServiceResult.success(occupants, metadata={"count": len(occupants)})
        except Exception as e:
            return self._handle_exception(e, "list occupants")
