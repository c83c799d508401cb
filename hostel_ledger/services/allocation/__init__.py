from hostel_ledger.services.allocation.allocation_service import AllocationService
from hostel_ledger.services.allocation.occupancy import (
    beds_held_by,
    normalize_id,
    occupancy_consistent,
    recompute_status,
    same_occupant,
)

__all__ = [
    "AllocationService",
    "beds_held_by",
    "normalize_id",
    "occupancy_consistent",
    "recompute_status",
    "same_occupant",
]
