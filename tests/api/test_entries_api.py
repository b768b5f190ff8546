"""
Tests for ledger entry API endpoints.

These test the HTTP layer: status codes, response format and
error mapping. Ledger behavior is tested in
test_ledger_service.py.
"""

from decimal import Decimal

from expense_ledger.services.ledger_service import LedgerService

HEADERS = {"X-User-Id": "user-1"}


def create_account(client, opening_balance=None):
    response = client.post("/accounts", json={
        "bank_name": "ICICI",
        "opening_balance": opening_balance,
    }, headers=HEADERS)
    return response.json()["id"]


def post_entry(client, account_id, amount, direction="credit", category="Salary", **fields):
    return client.post(f"/accounts/{account_id}/entries", json={
        "amount": amount,
        "direction": direction,
        "category": category,
        **fields,
    }, headers=HEADERS)


class TestCategories:

    def test_lists_categories_by_direction(self, client):
        response = client.get("/categories")

        assert response.status_code == 200
        data = response.json()
        assert "Freelance" in data["categories"]["credit"]
        assert "Transport" in data["categories"]["debit"]
        assert len(data["all_categories"]) == (
            len(data["categories"]["credit"]) + len(data["categories"]["debit"])
        )


class TestApplyEntry:

    def test_returns_201_with_snapshots(self, client):
        account_id = create_account(client)

        response = post_entry(client, account_id, "500")

        assert response.status_code == 201
        data = response.json()
        assert data["direction"] == "credit"
        assert Decimal(data["amount"]) == Decimal("500")
        assert Decimal(data["opening_balance"]) == Decimal("0")
        assert Decimal(data["closing_balance"]) == Decimal("500")

    def test_numeric_amount_accepted(self, client):
        account_id = create_account(client)

        response = post_entry(client, account_id, 12.5)

        assert response.status_code == 201
        assert Decimal(response.json()["amount"]) == Decimal("12.5")

    def test_insufficient_balance_returns_400_with_payload(self, client):
        account_id = create_account(client, opening_balance="100")

        response = post_entry(client, account_id, "150", "debit", "Bills")

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["kind"] == "insufficient_balance"
        assert Decimal(detail["details"]["current_balance"]) == Decimal("100")
        assert Decimal(detail["details"]["requested_amount"]) == Decimal("150")

    def test_wrong_category_returns_400(self, client):
        account_id = create_account(client)

        response = post_entry(client, account_id, "10", "credit", "Food")

        assert response.status_code == 400
        assert response.json()["detail"]["details"]["field"] == "category"

    def test_unknown_account_returns_404(self, client):
        response = post_entry(client, "missing", "10")

        assert response.status_code == 404

    def test_missing_identity_returns_401(self, client):
        account_id = create_account(client)

        response = client.post(f"/accounts/{account_id}/entries", json={
            "amount": "10", "direction": "credit", "category": "Salary",
        })

        assert response.status_code == 401


class TestStatement:

    def test_statement_shape(self, client):
        account_id = create_account(client)
        post_entry(client, account_id, "50", entry_date="2024-01-01")
        post_entry(client, account_id, "150", entry_date="2024-01-02")
        post_entry(client, account_id, "900", entry_date="2024-01-03")
        post_entry(client, account_id, "100", "debit", "Food", entry_date="2024-01-04")

        response = client.get(f"/accounts/{account_id}/entries", params={
            "min_amount": "100", "max_amount": "1000", "type": "credit",
            "page": "1", "limit": "10",
        }, headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert [Decimal(e["amount"]) for e in data["entries"]] == [
            Decimal("900"), Decimal("150"),
        ]
        assert data["pagination"]["total_count"] == 2
        assert data["pagination"]["has_next_page"] is False
        assert Decimal(data["summary"]["total_credit"]) == Decimal("1050")
        assert data["summary"]["debit_count"] == 0
        assert Decimal(data["current_balance"]) == Decimal("1000")
        assert "Salary" in data["filters"]["categories"]["credit"]

    def test_out_of_range_page_returns_first_page(self, client):
        account_id = create_account(client)
        post_entry(client, account_id, "50")

        response = client.get(f"/accounts/{account_id}/entries", params={
            "page": "99999999999999999999", "min_amount": "-1e30", "max_amount": "1e30",
        }, headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["current_page"] == 1
        assert len(data["entries"]) == 1

    def test_largest_amount_round_trips(self, client):
        account_id = create_account(client)

        response = post_entry(client, account_id, "99999999999999.9999")

        assert response.status_code == 201
        entry_id = response.json()["id"]
        data = client.get(f"/entries/{entry_id}", headers=HEADERS).json()
        assert Decimal(data["amount"]) == Decimal("99999999999999.9999")

    def test_statement_for_other_user_returns_404(self, client):
        account_id = create_account(client)

        response = client.get(
            f"/accounts/{account_id}/entries", headers={"X-User-Id": "user-2"},
        )

        assert response.status_code == 404


class TestEntryLifecycle:

    def test_get_amend_and_remove(self, client):
        account_id = create_account(client)
        post_entry(client, account_id, "500")
        entry_id = post_entry(client, account_id, "200", "debit", "Food").json()["id"]

        response = client.get(f"/entries/{entry_id}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["category"] == "Food"

        response = client.put(f"/entries/{entry_id}", json={
            "amount": "50", "direction": "debit", "category": "Transport",
        }, headers=HEADERS)
        assert response.status_code == 200
        assert Decimal(response.json()["closing_balance"]) == Decimal("450")

        response = client.delete(f"/entries/{entry_id}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["removed_entry_id"] == entry_id
        assert Decimal(response.json()["new_balance"]) == Decimal("500")

        assert client.get(f"/entries/{entry_id}", headers=HEADERS).status_code == 404

    def test_amend_into_overdraft_returns_400(self, client):
        account_id = create_account(client)
        post_entry(client, account_id, "100")
        entry_id = post_entry(client, account_id, "60", "debit", "Food").json()["id"]

        response = client.put(f"/entries/{entry_id}", json={
            "amount": "150", "direction": "debit", "category": "Food",
        }, headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "insufficient_balance"

    def test_remove_on_deleted_account_returns_null_balance(self, client):
        account_id = create_account(client)
        entry_id = post_entry(client, account_id, "100").json()["id"]
        client.delete(f"/accounts/{account_id}", headers=HEADERS)

        response = client.delete(f"/entries/{entry_id}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["new_balance"] is None

    def test_remove_missing_entry_returns_404(self, client):
        response = client.delete("/entries/missing", headers=HEADERS)

        assert response.status_code == 404


class TestReconcile:

    def test_reconcile_consistent_account(self, client):
        account_id = create_account(client, opening_balance="75")

        response = client.post(f"/accounts/{account_id}/reconcile", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["corrected"] is False
        assert Decimal(data["reconciled_balance"]) == Decimal("75")

    def test_consistency_error_returns_500(self, client, monkeypatch):
        account_id = create_account(client)

        def crash(self, account, new_balance):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(LedgerService, "_write_balance", crash)

        response = post_entry(client, account_id, "10")

        assert response.status_code == 500
        assert response.json()["detail"]["kind"] == "consistency"
