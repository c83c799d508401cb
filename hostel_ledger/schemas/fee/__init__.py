from hostel_ledger.schemas.fee.billing_entry import (
    ApplyPaymentRequest,
    BillingEntryResponse,
    ChargeCreate,
    CheckoutRequest,
    CheckoutResponse,
    CollectionItem,
    GeneratePackageRequest,
    GeneratePackageResponse,
    PaymentResponse,
    SplitPaymentRequest,
)

__all__ = [
    "CollectionItem",
    "GeneratePackageRequest",
    "ChargeCreate",
    "ApplyPaymentRequest",
    "SplitPaymentRequest",
    "CheckoutRequest",
    "BillingEntryResponse",
    "GeneratePackageResponse",
    "PaymentResponse",
    "CheckoutResponse",
]
