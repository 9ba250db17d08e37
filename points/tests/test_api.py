"""
Tests for the HTTP API and the service facade behind it.
"""

import pytest
from decimal import Decimal

from fastapi.testclient import TestClient
from mangum import Mangum

from points.api import create_app
from points.service import InvalidAmount, InvalidTransaction, PointsService
from points.tests.test_ledger import WORKED_EXAMPLE


@pytest.fixture
def service() -> PointsService:
    return PointsService()


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


class TestPointsService:
    """Tests for the add / spend / balance facade."""

    def test_round_trip(self, service):
        """Test add, spend and balance through the service."""
        service.add_transactions(WORKED_EXAMPLE)
        spent = service.spend_points(5000)

        assert sum(p.points for p in spent) == Decimal("-5000")
        assert dict(service.get_balances()) == {
            "DANNON": Decimal("1000"),
            "UNILEVER": Decimal("0"),
            "MILLER COORS": Decimal("5300"),
        }

    def test_errors_propagate(self, service):
        """Test that core validation errors reach the caller unchanged."""
        with pytest.raises(InvalidTransaction):
            service.add_transactions([{"payer": "DANNON"}])
        with pytest.raises(InvalidAmount):
            service.spend_points(-5)


class TestAddTransactionsRoute:
    """Tests for POST /transactions."""

    def test_adds_single_transaction(self, client, service):
        """Test that a single object is accepted."""
        response = client.post("/transactions", json=WORKED_EXAMPLE[0])

        assert response.status_code == 200
        assert response.json() == {"data": "Ok"}
        assert len(service.ledger) == 1

    def test_adds_multiple_transactions(self, client, service):
        """Test that an array is accepted in one call."""
        response = client.post("/transactions", json=WORKED_EXAMPLE)

        assert response.status_code == 200
        assert len(service.ledger) == 5

    def test_missing_payload(self, client, service):
        """Test that an empty request is rejected."""
        response = client.post("/transactions")

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing request payload"
        assert len(service.ledger) == 0

    def test_missing_payer(self, client, service):
        """Test that validation messages are returned to the client."""
        response = client.post("/transactions", json={"points": 300, "timestamp": "2020-11-02T14:00:00Z"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing payer field"
        assert len(service.ledger) == 0


class TestSpendRoute:
    """Tests for PUT /transactions."""

    def test_spend(self, client):
        """Test the worked example spend over HTTP."""
        client.post("/transactions", json=WORKED_EXAMPLE)

        response = client.put("/transactions", json={"points": 5000})

        assert response.status_code == 200
        spent = {p["payer"]: Decimal(str(p["points"])) for p in response.json()["data"]}
        assert spent == {
            "DANNON": Decimal("-100"),
            "UNILEVER": Decimal("-200"),
            "MILLER COORS": Decimal("-4700"),
        }

    def test_missing_points(self, client):
        """Test that a spend without points is rejected."""
        response = client.put("/transactions", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing points field"

    def test_points_are_json_numbers(self, client):
        """Test that spent points come back as plain numbers."""
        client.post("/transactions", json=WORKED_EXAMPLE)

        response = client.put("/transactions", json={"points": 5000})

        assert response.json()["data"] == [
            {"payer": "DANNON", "points": -100},
            {"payer": "UNILEVER", "points": -200},
            {"payer": "MILLER COORS", "points": -4700},
        ]

    def test_missing_payload(self, client):
        """Test that a spend without a body is rejected."""
        response = client.put("/transactions")

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing request payload"

    @pytest.mark.parametrize("points", ["abc", True, "NaN", [5]])
    def test_non_numeric_points(self, client, service, points):
        """Test that non-numeric amounts are a client error, not a schema error."""
        client.post("/transactions", json=WORKED_EXAMPLE)

        response = client.put("/transactions", json={"points": points})

        assert response.status_code == 400
        assert "number" in response.json()["detail"]
        assert len(service.ledger) == 5

    def test_negative_points(self, client, service):
        """Test that a negative spend is rejected without touching the ledger."""
        client.post("/transactions", json=WORKED_EXAMPLE)

        response = client.put("/transactions", json={"points": -10})

        assert response.status_code == 400
        assert len(service.ledger) == 5


class TestBalanceRoute:
    """Tests for GET /transactions and /health."""

    def test_balances(self, client):
        """Test balances after a spend."""
        client.post("/transactions", json=WORKED_EXAMPLE)
        client.put("/transactions", json={"points": 5000})

        response = client.get("/transactions")

        assert response.status_code == 200
        balances = {payer: Decimal(str(points)) for payer, points in response.json()["data"].items()}
        assert balances == {
            "DANNON": Decimal("1000"),
            "UNILEVER": Decimal("0"),
            "MILLER COORS": Decimal("5300"),
        }

    def test_balances_are_json_numbers(self, client):
        """Test that balances keep whole numbers whole and fractions fractional."""
        client.post("/transactions", json=[
            {"payer": "DANNON", "points": 300, "timestamp": "2020-10-31T10:00:00Z"},
            {"payer": "UNILEVER", "points": 12.5, "timestamp": "2020-10-31T11:00:00Z"},
        ])

        assert client.get("/transactions").json() == {"data": {"DANNON": 300, "UNILEVER": 12.5}}

    def test_empty_balances(self, client):
        """Test balances of an empty ledger."""
        assert client.get("/transactions").json() == {"data": {}}

    def test_health(self, client):
        """Test the health check."""
        assert client.get("/health").json() == {"status": "healthy", "service": "points-ledger"}


def test_serverless_handler():
    """Test that the deployment entrypoint wraps the app."""
    from api.index import handler

    assert isinstance(handler, Mangum)
