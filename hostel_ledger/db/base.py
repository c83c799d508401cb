"""SQLAlchemy Base class for all models."""
from hostel_ledger.models.base.base_model import Base


def import_models():
    """Import all models to register them with SQLAlchemy metadata."""
    from hostel_ledger.models.room import Bed, Room  # noqa: F401
    from hostel_ledger.models.student import Occupant  # noqa: F401
    from hostel_ledger.models.fee import BillingEntry  # noqa: F401
    from hostel_ledger.models.ledger import ManualLedgerEntry  # noqa: F401


import_models()
