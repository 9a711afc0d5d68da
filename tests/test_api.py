"""
Tests for the executor HTTP API.
"""

from datetime import timedelta
from decimal import Decimal

from api import token_service
from conftest import OWNER, UNPROFITABLE_PRICE


class TestEstimateEndpoint:
    """Tests for GET /api/estimate"""

    def test_public(self, client):
        response = client.get("/api/estimate")

        assert response.status_code == 200
        data = response.json()
        assert data["profitable"] is True
        assert Decimal(data["quote1"]) == Decimal("0.4")
        assert Decimal(data["quote2"]) == Decimal("2600")
        assert Decimal(data["fee"]) == Decimal("0.9")

    def test_halted_venue(self, client, venue_1):
        venue_1.halt()

        response = client.get("/api/estimate")

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "VenueError"


class TestInitiateEndpoint:
    """Tests for POST /api/initiate"""

    def test_requires_token(self, client):
        response = client.post("/api/initiate")

        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.post("/api/initiate", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_expired_token(self, client):
        token = token_service.create_access_token(OWNER, expires_delta=timedelta(seconds=-10))

        response = client.post("/api/initiate", headers={"Authorization": f"Bearer {token.access_token}"})

        assert response.status_code == 401

    def test_non_owner_forbidden(self, client, other_headers, ledger):
        response = client.post("/api/initiate", headers=other_headers)

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "Unauthorized"
        assert ledger.events == []

    def test_owner_executes(self, client, owner_headers, dai, engine):
        response = client.post("/api/initiate", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert Decimal(data["retained"]) == Decimal("1599.1")
        assert Decimal(data["repayment"]) == Decimal("1000.9")
        assert dai.balance_of(engine.address) == Decimal("1599.1")

    def test_custom_amount(self, client, owner_headers):
        response = client.post("/api/initiate", headers=owner_headers, json={"amount": "500"})

        assert response.status_code == 200
        assert Decimal(response.json()["borrow_amount"]) == Decimal("500")

    def test_rejects_non_positive_amount(self, client, owner_headers):
        response = client.post("/api/initiate", headers=owner_headers, json={"amount": "0"})

        assert response.status_code == 422

    def test_unprofitable(self, client, owner_headers, venue_2, dai, weth):
        venue_2.set_price(weth, dai, UNPROFITABLE_PRICE)

        response = client.post("/api/initiate", headers=owner_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "Unprofitable"


class TestStateEndpoints:
    """Tests for state, events and metrics"""

    def test_state(self, client):
        response = client.get("/api/state")

        assert response.status_code == 200
        data = response.json()
        assert data["owner"] == OWNER
        assert data["route"]["principal_asset"] == "DAI"
        assert "ledger" in data

    def test_events_after_execution(self, client, owner_headers):
        client.post("/api/initiate", headers=owner_headers)

        response = client.get("/api/events")

        assert [e["event"] for e in response.json()] == [
            "SwapExecuted",
            "SwapExecuted",
            "ArbitrageExecuted",
        ]

    def test_metrics(self, client, owner_headers):
        client.post("/api/initiate", headers=owner_headers)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'arb_executions_total{outcome="success"} 1.0' in response.text

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"
