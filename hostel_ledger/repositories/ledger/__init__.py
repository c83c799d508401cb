from hostel_ledger.repositories.ledger.manual_ledger_repository import ManualLedgerRepository

__all__ = ["ManualLedgerRepository"]
