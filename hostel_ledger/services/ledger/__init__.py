"""
Ledger projection and manual ledger entries.
"""

from hostel_ledger.services.ledger.ledger_service import LedgerService
from hostel_ledger.services.ledger.manual_ledger_service import ManualLedgerService
from hostel_ledger.services.ledger.session_builder import (
    Session,
    build_ledger,
    build_sessions,
    build_summary,
)

__all__ = [
    "LedgerService",
    "ManualLedgerService",
    "Session",
    "build_sessions",
    "build_ledger",
    "build_summary",
]
