"""Integration tests for wallet endpoints via TestClient."""

from decimal import Decimal


class TestWalletApi:
    def test_post_and_read_transactions(self, client):
        created = client.post("/wallets/c-1/transactions", json={"kind": "TIP", "amount": "4.00"})
        client.post("/wallets/c-1/transactions", json={"kind": "BONUS", "amount": "1.00"})

        assert created.status_code == 201
        transactions = client.get("/wallets/c-1/transactions").json()
        assert [t["kind"] for t in transactions] == ["BONUS", "TIP"]
        assert Decimal(client.get("/wallets/c-1").json()["balance"]) == Decimal("5.00")

    def test_unknown_wallet_is_404(self, client):
        assert client.get("/wallets/nobody").status_code == 404

    def test_overdraw_is_conflict(self, client):
        client.post("/wallets/c-1/transactions", json={"kind": "TIP", "amount": "4.00"})

        response = client.post("/wallets/c-1/withdraw", json={"amount": "10.00"})

        assert response.status_code == 409
        assert "Insufficient balance" in response.json()["detail"]["amount"][0]

    def test_withdraw(self, client):
        client.post("/wallets/c-1/transactions", json={"kind": "TIP", "amount": "4.00"})

        response = client.post("/wallets/c-1/withdraw", json={"amount": "1.50"})

        assert response.status_code == 201
        assert Decimal(response.json()["balance_after"]) == Decimal("2.50")

    def test_zero_amount_is_unprocessable(self, client):
        response = client.post("/wallets/c-1/transactions", json={"kind": "TIP", "amount": "0"})
        assert response.status_code == 422

    def test_adjustments_are_listed_until_applied(self, client):
        client.post("/wallets/c-1/bonuses", json={"amount": "3.00", "reason": "Weekend"})
        client.post("/wallets/c-1/fines", json={"amount": "1.00", "reason": "Late"})

        pending = client.get("/wallets/c-1/adjustments").json()

        assert sorted(a["kind"] for a in pending) == ["BONUS", "FINE"]

    def test_verify(self, client):
        client.post("/wallets/c-1/transactions", json={"kind": "TIP", "amount": "4.00"})

        response = client.get("/wallets/c-1/verify")

        assert response.json() == {"courier_id": "c-1", "entries_checked": 1}
