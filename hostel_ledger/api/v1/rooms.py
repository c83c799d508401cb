"""
Room inventory and bed allocation endpoints.

Static paths (``/available``, ``/availability-stats``, ``/shift``) are
declared before ``/{room_id}`` so they are not captured as ids.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from hostel_ledger.api import deps
from hostel_ledger.api.responses import respond
from hostel_ledger.models.base import RoomStatus, RoomType
from hostel_ledger.schemas.room import (
    AllocateBedRequest,
    AllocationResponse,
    FixRoomStatusResponse,
    ReleaseBedRequest,
    ReleaseResponse,
    RoomAvailabilityStats,
    RoomCreate,
    RoomResponse,
    RoomShiftRequest,
    RoomShiftResponse,
    RoomUpdate,
)
from hostel_ledger.services.allocation import AllocationService
from hostel_ledger.services.billing import TransferService
from hostel_ledger.services.room import RoomService

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    request: RoomCreate,
    service: RoomService = Depends(deps.get_room_service),
):
    return respond(service.create_room(request), RoomResponse)


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    status_filter: Optional[RoomStatus] = Query(default=None, alias="status"),
    room_type: Optional[RoomType] = None,
    is_ac: Optional[bool] = None,
    service: RoomService = Depends(deps.get_room_service),
):
    result = service.list_rooms(status=status_filter, room_type=room_type, is_ac=is_ac)
    return respond(result, RoomResponse, many=True)


@router.get("/available", response_model=List[RoomResponse])
def list_available_rooms(service: RoomService = Depends(deps.get_room_service)):
    return respond(service.list_available_rooms(), RoomResponse, many=True)


@router.get("/availability-stats", response_model=RoomAvailabilityStats)
def room_availability_stats(service: RoomService = Depends(deps.get_room_service)):
    return respond(service.availability_stats(), RoomAvailabilityStats)


@router.post("/shift", response_model=RoomShiftResponse)
def shift_room(
    request: RoomShiftRequest,
    service: TransferService = Depends(deps.get_transfer_service),
):
    result = service.transfer_room(request.occupant_id, request.new_room_id, request.new_bed_label)
    return respond(result, RoomShiftResponse)


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: str, service: RoomService = Depends(deps.get_room_service)):
    return respond(service.get_room(room_id), RoomResponse)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: str,
    request: RoomUpdate,
    service: RoomService = Depends(deps.get_room_service),
):
    return respond(service.update_room(room_id, request), RoomResponse)


@router.delete("/{room_id}")
def delete_room(room_id: str, service: RoomService = Depends(deps.get_room_service)):
    return respond(service.delete_room(room_id))


@router.post("/{room_id}/allocate", response_model=AllocationResponse)
def allocate_bed(
    room_id: str,
    request: AllocateBedRequest,
    service: AllocationService = Depends(deps.get_allocation_service),
):
    result = service.assign_bed(room_id, request.occupant_id, request.bed_label)
    return respond(result, AllocationResponse)


@router.post("/{room_id}/deallocate", response_model=ReleaseResponse)
def release_bed(
    room_id: str,
    request: ReleaseBedRequest,
    service: AllocationService = Depends(deps.get_allocation_service),
):
    return respond(service.release_bed(room_id, request.occupant_id), ReleaseResponse)


@router.post("/{room_ref}/fix-status", response_model=FixRoomStatusResponse)
def fix_room_status(
    room_ref: str,
    service: AllocationService = Depends(deps.get_allocation_service),
):
    return respond(service.fix_room_status(room_ref), FixRoomStatusResponse)
