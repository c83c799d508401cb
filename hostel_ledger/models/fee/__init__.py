from hostel_ledger.models.fee.billing_entry import BillingEntry

__all__ = ["BillingEntry"]
