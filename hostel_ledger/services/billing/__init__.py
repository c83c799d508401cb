"""
Billing engine: packages, payments, checkout, transfers and the
pending-fee cache.
"""

from hostel_ledger.services.billing.billing_base import BillingBaseService, generate_voucher
from hostel_ledger.services.billing.checkout_service import CheckoutService
from hostel_ledger.services.billing.package_service import PackageService
from hostel_ledger.services.billing.payment_service import PaymentService
from hostel_ledger.services.billing.pending_fee_service import PendingFeeService
from hostel_ledger.services.billing.transfer_service import TransferService

__all__ = [
    "BillingBaseService",
    "CheckoutService",
    "PackageService",
    "PaymentService",
    "PendingFeeService",
    "TransferService",
    "generate_voucher",
]
