from hostel_ledger.schemas.ledger.ledger_view import (
    LedgerResponse,
    LedgerRow,
    LedgerSession,
    LedgerSummary,
    Period,
    SessionItem,
    SessionLine,
    SessionRefunds,
)
from hostel_ledger.schemas.ledger.manual_entry import (
    ManualEntryCreate,
    ManualEntryResponse,
    ShiftAccountRequest,
)

__all__ = [
    "ManualEntryCreate",
    "ManualEntryResponse",
    "ShiftAccountRequest",
    "Period",
    "SessionLine",
    "SessionItem",
    "SessionRefunds",
    "LedgerSession",
    "LedgerRow",
    "LedgerSummary",
    "LedgerResponse",
]
