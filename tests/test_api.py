import pytest
from datetime import timedelta
from decimal import Decimal

from hostel_ledger.utils.date_utils import today

API = "/api/v1"


@pytest.fixture
def room_id(client):
    response = client.post(
        f"{API}/rooms",
        json={
            "room_number": "101",
            "room_type": "double",
            "base_rent": "10000",
            "mess_charge_per_month": "3000",
        },
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def occupant_id(client):
    response = client.post(
        f"{API}/students",
        json={
            "external_id": "STU-9001",
            "name": "Asha Rao",
            "email": "Asha@Example.com",
            "enrollment_date": (today() - timedelta(days=60)).isoformat(),
        },
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def seated(client, room_id, occupant_id):
    response = client.post(f"{API}/rooms/{room_id}/allocate", json={"occupant_id": occupant_id})
    assert response.status_code == 200
    return occupant_id


class TestHealthAndErrors:
    """Tests for the app shell and the error envelope"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_room_uses_error_envelope(self, client):
        response = client.get(f"{API}/rooms/nope")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert "timestamp" in error

    def test_request_validation_envelope(self, client):
        response = client.post(f"{API}/rooms", json={"room_number": "1"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestRoomRoutes:
    """Tests for /rooms"""

    def test_create_and_allocate(self, client, room_id, occupant_id):
        response = client.post(f"{API}/rooms/{room_id}/allocate", json={"occupant_id": occupant_id, "bed_label": "b"})

        body = response.json()
        assert response.status_code == 200
        assert body["bed_label"] == "B"
        assert body["room"]["occupied"] == 1
        assert body["room"]["occupant_ids"] == [occupant_id]

    def test_full_room_is_conflict(self, client, room_id):
        for n in range(3):
            occupant = client.post(
                f"{API}/students",
                json={"external_id": f"S-{n}", "name": f"Student {n}", "email": f"s{n}@example.com"},
            ).json()
            response = client.post(f"{API}/rooms/{room_id}/allocate", json={"occupant_id": occupant["id"]})

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Room is full"

    def test_availability_stats(self, client, seated):
        stats = client.get(f"{API}/rooms/availability-stats").json()

        assert stats["non_ac"]["double"]["occupied"] == 1
        assert stats["available_beds"] == 1

    def test_duplicate_room_number(self, client, room_id):
        response = client.post(
            f"{API}/rooms",
            json={"room_number": "101", "room_type": "single", "base_rent": "5000"},
        )

        assert response.status_code == 409
        assert response.json()["error"]["details"]["field"] == "room_number"


class TestBillingRoutes:
    """Tests for packages, payments and the ledger endpoint"""

    def test_generate_package_then_duplicate_is_throttled(self, client, seated):
        first = client.post(f"{API}/students/{seated}/checklist/fees", json={"duration_months": 5})
        second = client.post(f"{API}/students/{seated}/checklist/fees", json={"duration_months": 5})

        assert first.status_code == 201
        assert Decimal(first.json()["billing_entry"]["total_amount"]) == Decimal("75000")
        assert first.json()["deposit_included"] is True
        assert second.status_code == 429
        assert int(second.headers["Retry-After"]) >= 1
        assert second.json()["error"]["code"] == "RETRY_LATER"

        fees = client.get(f"{API}/fees", params={"occupant_id": seated}).json()
        assert len(fees) == 1

    def test_split_payment_and_ledger(self, client, seated):
        fee = client.post(f"{API}/students/{seated}/checklist/fees", json={"duration_months": 5}).json()
        fee_id = fee["billing_entry"]["id"]

        paid = client.post(
            f"{API}/fees/{fee_id}/payments",
            json={"account_a_amount": "12000", "account_b_amount": "3000"},
        )
        ledger = client.get(f"{API}/students/{seated}/ledger")

        assert paid.status_code == 200
        assert paid.json()["billing_entry"]["status"] == "partial"
        assert paid.json()["ledger_entries_created"] == 3
        body = ledger.json()
        assert body["occupant_id"] == seated
        assert Decimal(body["summary"]["total_pending"]) == Decimal("60000")
        assert body["sessions"][0]["is_active"] is True

    def test_apply_payment_requires_transaction_id(self, client, seated):
        fee = client.post(f"{API}/students/{seated}/checklist/fees", json={"duration_months": 1}).json()

        response = client.put(
            f"{API}/fees/{fee['billing_entry']['id']}/pay",
            json={"payment_method": "cash", "transaction_id": ""},
        )

        assert response.status_code == 422
        assert response.json()["error"]["details"]["field"] == "transaction_id"

    def test_checkout(self, client, seated, room_id):
        fee = client.post(f"{API}/students/{seated}/checklist/fees", json={"duration_months": 5}).json()

        response = client.post(f"{API}/fees/{fee['billing_entry']['id']}/checkout", json={})

        assert response.status_code == 200
        assert Decimal(response.json()["refund_amount"]) == Decimal("49000")
        assert client.get(f"{API}/rooms/{room_id}").json()["occupied"] == 0
        assert client.get(f"{API}/students/{seated}").json()["status"] == "inactive"

    def test_manual_entry_round_trip(self, client, seated):
        created = client.post(
            f"{API}/students/{seated}/ledger/entries",
            json={"date": today().isoformat(), "kind": "Payment", "account": "A", "amount": "1500"},
        )
        entry_id = created.json()["id"]

        shifted = client.put(
            f"{API}/students/{seated}/ledger/entries/{entry_id}/shift",
            json={"target_account": "B"},
        )
        cleared = client.delete(f"{API}/students/{seated}/ledger/entries")

        assert created.status_code == 201
        assert shifted.json()["account"] == "B"
        assert cleared.json() == {"occupant_id": seated, "deleted": 1}
