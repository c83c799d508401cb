from hostel_ledger.repositories.fee.billing_entry_repository import (
    ACTIVE_PACKAGE_STATUSES,
    BillingEntryRepository,
)

__all__ = ["ACTIVE_PACKAGE_STATUSES", "BillingEntryRepository"]
