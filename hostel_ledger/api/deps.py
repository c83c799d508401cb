"""
Service factories for route dependencies.

Example usage in a router:

    @router.get("/rooms")
    def list_rooms(service: RoomService = Depends(deps.get_room_service)):
        ...
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from hostel_ledger.db.session import get_db
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.ledger import ManualLedgerRepository
from hostel_ledger.repositories.room import RoomRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.services.allocation import AllocationService
from hostel_ledger.services.billing import (
    CheckoutService,
    PackageService,
    PaymentService,
    TransferService,
)
from hostel_ledger.services.ledger import LedgerService, ManualLedgerService
from hostel_ledger.services.room import RoomService
from hostel_ledger.services.student import OccupantService

__all__ = [
    "get_db",
    "get_room_service",
    "get_allocation_service",
    "get_occupant_service",
    "get_package_service",
    "get_payment_service",
    "get_checkout_service",
    "get_transfer_service",
    "get_ledger_service",
    "get_manual_ledger_service",
]


# --- Inventory ----------------------------------------------------------------

def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    return RoomService(RoomRepository(db), db)


def get_allocation_service(db: Session = Depends(get_db)) -> AllocationService:
    return AllocationService(RoomRepository(db), db)


def get_occupant_service(db: Session = Depends(get_db)) -> OccupantService:
    return OccupantService(OccupantRepository(db), db)


# --- Billing ------------------------------------------------------------------

def get_package_service(db: Session = Depends(get_db)) -> PackageService:
    return PackageService(BillingEntryRepository(db), db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(BillingEntryRepository(db), db)


def get_checkout_service(db: Session = Depends(get_db)) -> CheckoutService:
    return CheckoutService(BillingEntryRepository(db), db)


def get_transfer_service(db: Session = Depends(get_db)) -> TransferService:
    return TransferService(BillingEntryRepository(db), db)


# --- Ledger -------------------------------------------------------------------

def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(OccupantRepository(db), db)


def get_manual_ledger_service(db: Session = Depends(get_db)) -> ManualLedgerService:
    return ManualLedgerService(ManualLedgerRepository(db), db)
