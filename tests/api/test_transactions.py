"""
Tests for transaction API endpoints.

These test the HTTP layer: status codes, response format,
and error mapping. Ledger behaviour is tested in
tests/services.
"""

from decimal import Decimal

import pytest

CUSTOMER = {"customer_name": "Asha Ramdial", "customer_email": "asha@example.com"}


def post(client, body, user="teller-1"):
    return client.post(
        "/transactions", json={**CUSTOMER, **body}, headers={"X-User-Id": user},
    )


def usd_balance(client):
    return Decimal(client.get("/accounts/USD/balance").json()["balance"])


@pytest.fixture
def accounts(seed_accounts):
    seed_accounts(TTD="1000", USD="0")


class TestCreateTransaction:

    def test_cash_in_returns_201(self, client, accounts):
        response = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "100",
        })
        assert response.status_code == 201

        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["transaction_type"] == "CASH_IN"
        assert data["created_by"] == "teller-1"
        assert data["reference"].startswith("TX")
        assert Decimal(data["amount"]) == Decimal("100")
        assert [(d["currency"], Decimal(d["amount"])) for d in data["deltas"]] == [
            ("USD", Decimal("100")),
        ]
        assert usd_balance(client) == Decimal("100")

    def test_buy_returns_settlement_amount(self, client, accounts):
        response = post(client, {
            "transaction_type": "BUY", "currency": "USD",
            "amount": "100", "exchange_rate": "6.80",
        })
        assert response.status_code == 201
        assert Decimal(response.json()["amount_settlement"]) == Decimal("680.00")

    def test_default_user_is_system(self, client, accounts):
        response = client.post("/transactions", json={
            **CUSTOMER,
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "1",
        })
        assert response.json()["created_by"] == "system"

    def test_insufficient_balance_returns_409(self, client, accounts):
        response = post(client, {
            "transaction_type": "CASH_OUT", "currency": "USD", "amount": "50",
        })
        assert response.status_code == 409

        detail = response.json()["detail"]
        assert detail["code"] == "INSUFFICIENT_BALANCE"
        assert detail["currency"] == "USD"
        assert Decimal(detail["requested"]) == Decimal("50")
        assert usd_balance(client) == Decimal("0")

    def test_rule_violations_return_400_with_all_violations(self, client, accounts):
        response = client.post("/transactions", json={
            "transaction_type": "SELL", "currency": "JPY", "amount": "-1",
        })
        assert response.status_code == 400

        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_FAILED"
        assert len(detail["violations"]) == 5

    def test_unknown_transaction_type_is_rejected(self, client, accounts):
        response = post(client, {
            "transaction_type": "REFUND", "currency": "USD", "amount": "1",
        })
        assert response.status_code == 422

    def test_malformed_amount_is_rejected(self, client, accounts):
        response = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "lots",
        })
        assert response.status_code == 422

    def test_too_many_decimal_places_is_rejected(self, client, accounts):
        response = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "1.00001",
        })
        assert response.status_code == 422

    def test_sub_cent_trade_returns_400(self, client, accounts):
        client.post("/transactions", json={
            **CUSTOMER,
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "1",
        })

        response = post(client, {
            "transaction_type": "SELL", "currency": "USD",
            "amount": "0.004", "exchange_rate": "1",
        })
        assert response.status_code == 400

        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_FAILED"
        assert detail["violations"] == [
            "settlement amount of 0.004 at rate 1 rounds to zero"
        ]
        assert usd_balance(client) == Decimal("1")


class TestReadTransactions:

    def test_get_transaction(self, client, accounts):
        created = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "5",
        }).json()

        response = client.get(f"/transactions/{created['id']}")
        assert response.status_code == 200
        assert response.json()["reference"] == created["reference"]

    def test_get_missing_transaction_returns_404(self, client):
        response = client.get("/transactions/999")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TRANSACTION_NOT_FOUND"

    def test_list_with_filters_and_pages(self, client, accounts):
        for amount in ("1", "2", "3"):
            post(client, {
                "transaction_type": "CASH_IN", "currency": "USD", "amount": amount,
            })
        post(client, {
            "transaction_type": "BUY", "currency": "USD",
            "amount": "10", "exchange_rate": "6.5",
        })

        response = client.get("/transactions", params={
            "transaction_type": "CASH_IN", "limit": 2,
        })
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert len(data["items"]) == 2
        assert Decimal(data["items"][0]["amount"]) == Decimal("3")

    def test_list_sorted_by_amount_ascending(self, client, accounts):
        for amount in ("20", "5", "12"):
            post(client, {
                "transaction_type": "CASH_IN", "currency": "USD", "amount": amount,
            })

        response = client.get("/transactions", params={
            "sort_by": "amount", "sort_order": "asc",
        })
        assert response.status_code == 200
        amounts = [Decimal(t["amount"]) for t in response.json()["items"]]
        assert amounts == [Decimal("5"), Decimal("12"), Decimal("20")]

    def test_list_rejects_unknown_sort_field(self, client):
        response = client.get("/transactions", params={"sort_by": "signature"})
        assert response.status_code == 422

    def test_list_rejects_bad_limit(self, client):
        response = client.get("/transactions", params={"limit": 0})
        assert response.status_code == 422


class TestEditTransaction:

    def test_patch_changes_notes_only(self, client, accounts):
        created = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "100",
        }).json()

        response = client.patch(f"/transactions/{created['id']}", json={
            "notes": "customer asked for receipt",
            "amount": "999",
        })
        assert response.status_code == 200

        data = response.json()
        assert data["notes"] == "customer asked for receipt"
        assert Decimal(data["amount"]) == Decimal("100")
        assert usd_balance(client) == Decimal("100")

    def test_patch_bad_email_returns_400(self, client, accounts):
        created = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "100",
        }).json()

        response = client.patch(
            f"/transactions/{created['id']}", json={"customer_email": "nope"},
        )
        assert response.status_code == 400


class TestDeleteTransaction:

    def test_delete_returns_204_and_reverses(self, client, accounts):
        created = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "100",
        }).json()

        response = client.delete(
            f"/transactions/{created['id']}", headers={"X-User-Id": "supervisor"},
        )
        assert response.status_code == 204
        assert usd_balance(client) == Decimal("0")

        data = client.get(f"/transactions/{created['id']}").json()
        assert data["status"] == "REVERSED"
        assert data["reversed_by"] == "supervisor"

    def test_second_delete_returns_409(self, client, accounts):
        created = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "100",
        }).json()
        client.delete(f"/transactions/{created['id']}")

        response = client.delete(f"/transactions/{created['id']}")
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "ALREADY_REVERSED"

    def test_delete_that_would_overdraw_returns_409(self, client, accounts):
        created = post(client, {
            "transaction_type": "CASH_IN", "currency": "USD", "amount": "100",
        }).json()
        post(client, {
            "transaction_type": "CASH_OUT", "currency": "USD", "amount": "70",
        })

        response = client.delete(f"/transactions/{created['id']}")
        assert response.status_code == 409
        assert usd_balance(client) == Decimal("30")

    def test_delete_missing_returns_404(self, client):
        response = client.delete("/transactions/999")
        assert response.status_code == 404
