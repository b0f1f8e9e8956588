from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from api.api import app
from api.dependencies import get_engine
from domain.engine import LedgerEngine
from tests.helpers.memory_gateway import MemoryGateway

SALE = {"metal": "gold", "weight": "10", "rate": "7000", "amount_paid": "60000"}


@pytest.fixture()
def client(ledger: LedgerEngine) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_engine] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_customer(client: TestClient, name: str = "Asha Verma") -> int:
    response = client.post("/customers", json={"name": name, "phone": "9800000001"})
    assert response.status_code == 201
    return response.json()["customer"]["id"]


def test_create_and_list_customers(client: TestClient) -> None:
    customer_id = _create_customer(client)

    response = client.get("/customers")

    assert response.status_code == 200
    (customer,) = response.json()
    assert customer["id"] == customer_id
    assert customer["name"] == "Asha Verma"
    assert Decimal(customer["cash_balance"]) == Decimal("0")
    assert customer["transactions"] == []


def test_customer_transaction(client: TestClient) -> None:
    customer_id = _create_customer(client)

    response = client.post("/transactions", json={"customer_id": customer_id, "category": "Sale", "details": SALE})

    assert response.status_code == 201
    body = response.json()
    assert body["shop_transaction"] is None
    assert body["warning"] is None
    transaction = body["transaction"]
    assert Decimal(transaction["cash_change"]) == Decimal("-10000")
    assert Decimal(transaction["gold_balance_after"]) == Decimal("10")
    assert Decimal(transaction["details"]["total_amount"]) == Decimal("70000")

    customer = client.get(f"/customers/{customer_id}").json()
    assert Decimal(customer["cash_balance"]) == Decimal("-10000")
    assert len(customer["transactions"]) == 1


def test_shop_transaction(client: TestClient) -> None:
    response = client.post("/transactions", json={"category": "CashIn", "details": {"amount": "2500"}})

    assert response.status_code == 201
    assert response.json()["transaction"] is None
    assert Decimal(response.json()["shop_transaction"]["cash_balance_after"]) == Decimal("2500")
    (listed,) = client.get("/shop-transactions").json()
    assert listed["id"] == 1


def test_rejections(client: TestClient) -> None:
    customer_id = _create_customer(client)

    shop_sale = client.post("/transactions", json={"category": "Sale", "details": SALE})
    wrong_details = client.post(
        "/transactions", json={"customer_id": customer_id, "category": "Sale", "details": {"amount": "5"}}
    )
    protected = client.patch(f"/customers/{customer_id}", json={"gold_balance": "5"})
    missing = client.post("/transactions", json={"customer_id": 99, "category": "CashIn", "details": {"amount": "5"}})

    assert shop_sale.status_code == 422
    assert wrong_details.status_code == 422
    assert protected.status_code == 422
    assert missing.status_code == 404
    assert client.get("/customers/99").status_code == 404
    assert client.delete("/customers/99").status_code == 404


def test_update_and_delete_customer(client: TestClient) -> None:
    customer_id = _create_customer(client)

    updated = client.patch(f"/customers/{customer_id}", json={"pan": "ABCDE1234F"})
    deleted = client.delete(f"/customers/{customer_id}")

    assert updated.status_code == 200
    assert updated.json()["customer"]["pan"] == "ABCDE1234F"
    assert deleted.status_code == 200
    assert client.get("/customers").json() == []


def test_rates(client: TestClient) -> None:
    assert Decimal(client.get("/rates").json()["gold"]["sell"]) == Decimal("7050")

    response = client.put("/rates/silver", json={"buy": "88", "sell": "93"})

    assert response.status_code == 200
    assert Decimal(response.json()["live_rates"]["silver"]["buy"]) == Decimal("88")
    assert client.put("/rates/platinum", json={"buy": "1", "sell": "1"}).status_code == 422


def test_clear_endpoints(client: TestClient, ledger: LedgerEngine) -> None:
    customer_id = _create_customer(client)
    client.post("/transactions", json={"customer_id": customer_id, "category": "Sale", "details": SALE})

    assert client.post("/clear-transactions").status_code == 200
    assert ledger.get_customer(customer_id) is not None
    assert ledger.snapshot().transaction_id_counter == 0

    assert client.post("/clear-all").status_code == 200
    assert ledger.customers == ()


def test_save_failure_is_reported_as_warning(client: TestClient, gateway: MemoryGateway) -> None:
    gateway.fail_saves = True

    response = client.post("/customers", json={"name": "Asha Verma", "phone": "9800000001"})

    assert response.status_code == 201
    assert "disk full" in response.json()["warning"]
    assert len(client.get("/customers").json()) == 1


def test_reports(client: TestClient) -> None:
    customer_id = _create_customer(client)
    client.post("/transactions", json={"customer_id": customer_id, "category": "Sale", "details": SALE})
    client.post("/transactions", json={"category": "CashOut", "details": {"amount": "300", "remarks": "Tea"}})

    dues = client.get("/reports/dues").json()
    balances = client.get("/reports/balances").json()
    volume = client.get("/reports/volume", params={"top_n": 5}).json()
    daily = client.get("/reports/daily", params={"start": "2024-01-01", "end": "2024-01-02"}).json()
    expenses = client.get("/reports/expenses").json()

    assert Decimal(dues["total"]) == Decimal("-10000")
    assert [row["asset"] for row in balances["assets"]] == ["cash", "gold", "silver"]
    assert volume[0]["customer_id"] == customer_id
    assert [row["day"] for row in daily] == ["2024-01-01", "2024-01-02"]
    assert Decimal(daily[0]["total"]) == Decimal("70300")
    assert [row["name"] for row in expenses] == ["tea"]
    assert client.get("/reports/balances", params={"start": "2024-02-01", "end": "2024-01-01"}).status_code == 422
