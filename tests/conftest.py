import pytest
from datetime import date, timedelta
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hostel_ledger.core.locks import AdvisoryLock, reset_package_lock
from hostel_ledger.db.base import Base
from hostel_ledger.db.session import get_db
from hostel_ledger.main import create_app
from hostel_ledger.models.base import OccupantStatus, RoomType
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.ledger import ManualLedgerRepository
from hostel_ledger.repositories.room import RoomRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.schemas.room import RoomCreate
from hostel_ledger.schemas.student import OccupantCreate
from hostel_ledger.services.allocation import AllocationService
from hostel_ledger.services.billing import (
    CheckoutService,
    PackageService,
    PaymentService,
    TransferService,
)
from hostel_ledger.services.ledger import LedgerService, ManualLedgerService
from hostel_ledger.services.room import RoomService
from hostel_ledger.services.student import OccupantService
from hostel_ledger.utils.date_utils import today


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    """Return a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def fresh_package_lock():
    """Every test starts with an empty process-wide package lock."""
    reset_package_lock()
    yield
    reset_package_lock()


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def room_service(db):
    return RoomService(RoomRepository(db), db)


@pytest.fixture
def allocation_service(db):
    return AllocationService(RoomRepository(db), db)


@pytest.fixture
def occupant_service(db):
    return OccupantService(OccupantRepository(db), db)


@pytest.fixture
def package_service(db):
    """Package service with a lock that frees up as soon as it is released."""
    lock = AdvisoryLock(ttl_seconds=10.0, release_delay_seconds=0.0)
    return PackageService(BillingEntryRepository(db), db, lock=lock)


@pytest.fixture
def payment_service(db):
    return PaymentService(BillingEntryRepository(db), db)


@pytest.fixture
def checkout_service(db):
    return CheckoutService(BillingEntryRepository(db), db)


@pytest.fixture
def transfer_service(db):
    return TransferService(BillingEntryRepository(db), db)


@pytest.fixture
def ledger_service(db):
    return LedgerService(OccupantRepository(db), db)


@pytest.fixture
def manual_ledger_service(db):
    return ManualLedgerService(ManualLedgerRepository(db), db)


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_room(room_service):
    """Create and return a room; pricing defaults to rent 10000 / mess 3000."""
    def _make_room(
        room_number="101",
        room_type=RoomType.DOUBLE,
        base_rent="10000",
        mess_charge_per_month="3000",
        rent_table=None,
        is_ac=False,
        **extra,
    ):
        request = RoomCreate(
            room_number=room_number,
            room_type=room_type,
            base_rent=Decimal(base_rent),
            mess_charge_per_month=(
                Decimal(mess_charge_per_month) if mess_charge_per_month is not None else None
            ),
            rent_table=rent_table or {},
            is_ac=is_ac,
            **extra,
        )
        return room_service.create_room(request).unwrap()

    return _make_room


@pytest.fixture
def make_occupant(occupant_service):
    """Create and return an occupant with a unique external id and email."""
    counter = {"n": 0}

    def _make_occupant(enrollment_date=None, status=OccupantStatus.ACTIVE, name="Test Student"):
        counter["n"] += 1
        n = counter["n"]
        request = OccupantCreate(
            external_id=f"STU-{n:04d}",
            name=f"{name} {n}",
            email=f"student{n}@example.com",
            enrollment_date=enrollment_date,
            status=status,
        )
        return occupant_service.create_occupant(request).unwrap()

    return _make_occupant


@pytest.fixture
def seated_occupant(make_room, make_occupant, allocation_service):
    """
    Occupant enrolled 60 days ago and seated in a single room priced at
    rent 10000 / mess 3000 per month.
    """
    room = make_room(room_number="201", room_type=RoomType.SINGLE)
    occupant = make_occupant(enrollment_date=today() - timedelta(days=60))
    allocation_service.assign_bed(room.id, occupant.id).unwrap()
    return occupant, room


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(engine):
    """Return an API client whose requests run against the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def days_ago():
    def _days_ago(days: int) -> date:
        return today() - timedelta(days=days)

    return _days_ago
