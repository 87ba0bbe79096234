"""Tests for transactions API endpoints."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerline.models.transaction import Transaction


@pytest.fixture
def sample_transaction(make_transaction):
    return make_transaction(description="WHOLEFDS MKT 10234", amount=Decimal("-42.18"))


class TestTransactionsAPI:
    """Test transactions endpoints."""

    def test_list_transactions_empty(self, client, user_id):
        """Should return empty paginated list."""
        response = client.get("/api/v1/transactions", params={"user_id": user_id})
        assert response.status_code == 200
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0

    def test_user_id_required(self, client):
        response = client.get("/api/v1/transactions")
        assert response.status_code == 422

    def test_list_transactions_with_data(self, client, user_id, sample_transaction):
        """Should return transactions."""
        response = client.get("/api/v1/transactions", params={"user_id": user_id})
        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 1
        assert data["total"] == 1
        assert data["items"][0]["merchant_key"] == "WHOLEFDS_MKT"

    def test_list_scoped_to_user(self, client, make_transaction):
        make_transaction(owner="someone-else")
        response = client.get("/api/v1/transactions", params={"user_id": "user-1"})
        assert response.json()["total"] == 0

    def test_get_transaction(self, client, user_id, sample_transaction):
        """Should return single transaction."""
        response = client.get(f"/api/v1/transactions/{sample_transaction.id}", params={"user_id": user_id})
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == sample_transaction.id
        assert data["fingerprint_hash"] == sample_transaction.fingerprint_hash

    def test_get_transaction_not_found(self, client, user_id):
        response = client.get("/api/v1/transactions/missing", params={"user_id": user_id})
        assert response.status_code == 404

    def test_get_transaction_of_other_user(self, client, make_transaction):
        """Another user's transaction is not visible."""
        other = make_transaction(owner="someone-else")
        response = client.get(f"/api/v1/transactions/{other.id}", params={"user_id": "user-1"})
        assert response.status_code == 404

    def test_get_transaction_requires_user(self, client, sample_transaction):
        response = client.get(f"/api/v1/transactions/{sample_transaction.id}")
        assert response.status_code == 422

    def test_search_transactions(self, client, user_id, sample_transaction):
        """Should filter by search term."""
        response = client.get("/api/v1/transactions", params={"user_id": user_id, "search": "WHOLE"})
        assert len(response.json()["items"]) == 1

        response = client.get("/api/v1/transactions", params={"user_id": user_id, "search": "xyz"})
        assert len(response.json()["items"]) == 0

    def test_filter_by_merchant_and_date(self, client, user_id, make_transaction):
        make_transaction(posted_date=date(2024, 1, 15))
        make_transaction(posted_date=date(2024, 2, 15))
        make_transaction(posted_date=date(2024, 2, 20), description="SHELL OIL 57442", amount=Decimal("-40.00"))

        response = client.get("/api/v1/transactions", params={
            "user_id": user_id,
            "merchant_key": "NETFLIX_COM",
            "start_date": "2024-02-01",
        })
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["posted_date"] == "2024-02-15"

    def test_pagination(self, client, user_id, make_transaction):
        for day in range(1, 6):
            make_transaction(posted_date=date(2024, 1, day))

        response = client.get("/api/v1/transactions", params={"user_id": user_id, "per_page": 2, "page": 3})
        data = response.json()
        assert data["total"] == 5
        assert data["pages"] == 3
        assert len(data["items"]) == 1
        assert data["items"][0]["posted_date"] == "2024-01-01"


class TestRegenerateMerchantKeys:
    """Test merchant key regeneration."""

    def test_regenerate(self, client, db_session, user_id, sample_transaction, make_transaction):
        make_transaction()
        sample_transaction.merchant_key = "STALE_KEY"
        db_session.commit()

        response = client.post("/api/v1/transactions/regenerate-merchant-keys", json={"user_id": user_id})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["updated"] == 1
        assert data["unchanged"] == 1

        db_session.refresh(sample_transaction)
        assert sample_transaction.merchant_key == "WHOLEFDS_MKT"
        assert db_session.query(Transaction).filter(Transaction.merchant_key == "STALE_KEY").count() == 0
