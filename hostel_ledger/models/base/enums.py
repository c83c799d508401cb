"""
Database enums.

Stored as plain strings (String columns); being str subclasses they
compare equal to the raw values read back from the database.
"""

import enum


class RoomStatus(str, enum.Enum):
    """Room availability status."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class RoomType(str, enum.Enum):
    """Room type by sharing."""
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    QUADRUPLE = "quadruple"


ROOM_TYPE_CAPACITY = {
    RoomType.SINGLE: 1,
    RoomType.DOUBLE: 2,
    RoomType.TRIPLE: 3,
    RoomType.QUADRUPLE: 4,
}

BED_LABELS = ("A", "B", "C", "D")


class OccupantStatus(str, enum.Enum):
    """Occupant (student) lifecycle status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    REGISTERED = "registered"
    GRADUATED = "graduated"
    SUSPENDED = "suspended"


class FeeKind(str, enum.Enum):
    """Kind of billing entry."""
    PACKAGE = "package"
    MESS = "mess"
    SECURITY = "security"
    OTHER = "other"
    ADJUSTMENT = "adjustment"
    REFUND = "refund"


# Kinds an operator may create by hand
MANUAL_FEE_KINDS = (FeeKind.PACKAGE, FeeKind.MESS, FeeKind.SECURITY, FeeKind.OTHER)


class FeeStatus(str, enum.Enum):
    """Billing entry status."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CHECKED_OUT = "checked_out"
    REFUNDED = "refunded"


# Statuses that still carry an amount owed
OPEN_FEE_STATUSES = (FeeStatus.PENDING, FeeStatus.PARTIAL, FeeStatus.OVERDUE)

# Statuses that cannot take another payment
SETTLED_FEE_STATUSES = (FeeStatus.PAID, FeeStatus.CHECKED_OUT, FeeStatus.REFUNDED)


class FeeSource(str, enum.Enum):
    """Where a billing entry came from."""
    MANUAL = "manual"
    AUTO_PACKAGE = "auto_package"
    TRANSFER = "transfer"
    CHECKOUT = "checkout"


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CARD = "card"
    ONLINE = "online"
    CHEQUE = "cheque"
    ADJUSTMENT = "adjustment"


# Methods accepted when settling a billing entry through applyPayment
GATEWAY_PAYMENT_METHODS = (
    PaymentMethod.CASH,
    PaymentMethod.BANK_TRANSFER,
    PaymentMethod.UPI,
    PaymentMethod.CARD,
    PaymentMethod.ONLINE,
    PaymentMethod.CHEQUE,
)


class LedgerEntryKind(str, enum.Enum):
    """Manual ledger entry kind: Payment is a credit, Other a debit or marker."""
    PAYMENT = "Payment"
    OTHER = "Other"


class SettlementAccount(str, enum.Enum):
    """External settlement accounts: A collects rent and deposit, B collects mess."""
    A = "A"
    B = "B"


class LedgerTag(str, enum.Enum):
    """What a manual ledger entry relates to."""
    RENT = "rent"
    MESS = "mess"
    DEPOSIT = "deposit"
    REFUND = "refund"
    ADJUSTMENT = "adjustment"
    ROOM_SHIFT = "room_shift"


class Component(str, enum.Enum):
    """Package components."""
    RENT = "rent"
    MESS = "mess"
    DEPOSIT = "deposit"
