from hostel_ledger.models.ledger.manual_ledger_entry import ManualLedgerEntry

__all__ = ["ManualLedgerEntry"]
