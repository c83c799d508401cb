"""
Base model package: declarative base, abstract models and enums.
"""

from hostel_ledger.models.base.base_model import Base, BaseModel, TimestampModel, new_id
from hostel_ledger.models.base.enums import (
    BED_LABELS,
    GATEWAY_PAYMENT_METHODS,
    MANUAL_FEE_KINDS,
    OPEN_FEE_STATUSES,
    ROOM_TYPE_CAPACITY,
    SETTLED_FEE_STATUSES,
    Component,
    FeeKind,
    FeeSource,
    FeeStatus,
    LedgerEntryKind,
    LedgerTag,
    OccupantStatus,
    PaymentMethod,
    RoomStatus,
    RoomType,
    SettlementAccount,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "new_id",
    "BED_LABELS",
    "GATEWAY_PAYMENT_METHODS",
    "MANUAL_FEE_KINDS",
    "OPEN_FEE_STATUSES",
    "ROOM_TYPE_CAPACITY",
    "SETTLED_FEE_STATUSES",
    "Component",
    "FeeKind",
    "FeeSource",
    "FeeStatus",
    "LedgerEntryKind",
    "LedgerTag",
    "OccupantStatus",
    "PaymentMethod",
    "RoomStatus",
    "RoomType",
    "SettlementAccount",
]
