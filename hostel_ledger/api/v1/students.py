"""
Occupant endpoints, including package generation and the ledger views.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from hostel_ledger.api import deps
from hostel_ledger.api.responses import respond
from hostel_ledger.models.base import OccupantStatus
from hostel_ledger.schemas.fee import GeneratePackageRequest, GeneratePackageResponse
from hostel_ledger.schemas.ledger import (
    LedgerResponse,
    ManualEntryCreate,
    ManualEntryResponse,
    ShiftAccountRequest,
)
from hostel_ledger.schemas.student import OccupantCreate, OccupantResponse
from hostel_ledger.services.billing import PackageService
from hostel_ledger.services.ledger import LedgerService, ManualLedgerService
from hostel_ledger.services.student import OccupantService

router = APIRouter(prefix="/students", tags=["students"])


@router.post("", response_model=OccupantResponse, status_code=status.HTTP_201_CREATED)
def create_occupant(
    request: OccupantCreate,
    service: OccupantService = Depends(deps.get_occupant_service),
):
    return respond(service.create_occupant(request), OccupantResponse)


@router.get("", response_model=List[OccupantResponse])
def list_occupants(
    status_filter: Optional[OccupantStatus] = Query(default=None, alias="status"),
    service: OccupantService = Depends(deps.get_occupant_service),
):
    return respond(service.list_occupants(status_filter), OccupantResponse, many=True)


@router.get("/{occupant_id}", response_model=OccupantResponse)
def get_occupant(
    occupant_id: str,
    service: OccupantService = Depends(deps.get_occupant_service),
):
    return respond(service.get_occupant(occupant_id), OccupantResponse)


# --- Packages -----------------------------------------------------------------

@router.post(
    "/{occupant_id}/checklist/fees",
    response_model=GeneratePackageResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_package(
    occupant_id: str,
    request: GeneratePackageRequest,
    service: PackageService = Depends(deps.get_package_service),
):
    result = service.generate_package(
        occupant_id,
        request.duration_months,
        due_date=request.due_date,
        collection_plan=request.collection_plan,
    )
    return respond(result, GeneratePackageResponse)


# --- Ledger -------------------------------------------------------------------

@router.get("/{occupant_id}/ledger", response_model=LedgerResponse)
def get_ledger(
    occupant_id: str,
    as_of: Optional[date] = None,
    service: LedgerService = Depends(deps.get_ledger_service),
):
    return respond(service.get_ledger(occupant_id, on=as_of), LedgerResponse)


@router.get("/{occupant_id}/ledger/entries", response_model=List[ManualEntryResponse])
def list_manual_entries(
    occupant_id: str,
    service: ManualLedgerService = Depends(deps.get_manual_ledger_service),
):
    return respond(service.list_manual_entries(occupant_id), ManualEntryResponse, many=True)


@router.post(
    "/{occupant_id}/ledger/entries",
    response_model=ManualEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_manual_entry(
    occupant_id: str,
    request: ManualEntryCreate,
    service: ManualLedgerService = Depends(deps.get_manual_ledger_service),
):
    return respond(service.add_manual_entry(occupant_id, request), ManualEntryResponse)


@router.delete("/{occupant_id}/ledger/entries")
def delete_manual_entries(
    occupant_id: str,
    service: ManualLedgerService = Depends(deps.get_manual_ledger_service),
):
    return respond(service.delete_manual_entries(occupant_id))


@router.delete("/{occupant_id}/ledger/entries/{entry_id}")
def delete_manual_entry(
    occupant_id: str,
    entry_id: str,
    service: ManualLedgerService = Depends(deps.get_manual_ledger_service),
):
    return respond(service.delete_manual_entry(occupant_id, entry_id))


@router.put("/{occupant_id}/ledger/entries/{entry_id}/shift", response_model=ManualEntryResponse)
def shift_manual_entry_account(
    occupant_id: str,
    entry_id: str,
    request: ShiftAccountRequest,
    service: ManualLedgerService = Depends(deps.get_manual_ledger_service),
):
    result = service.shift_manual_entry_account(entry_id, request.target_account, occupant_id=occupant_id)
    return respond(result, ManualEntryResponse)
