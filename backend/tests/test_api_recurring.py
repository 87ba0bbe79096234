"""Tests for recurring API endpoints."""

from datetime import date


class TestRecurringAPI:
    """Test recurring endpoints."""

    def test_list_empty(self, client, user_id):
        response = client.get("/api/v1/recurring", params={"user_id": user_id})
        assert response.status_code == 200
        assert response.json() == []

    def test_detect_and_list(self, client, user_id, make_transaction):
        for month in (1, 2, 3):
            make_transaction(posted_date=date(2024, month, 15))

        response = client.post("/api/v1/recurring/detect", json={"user_id": user_id})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["detected"] == 1
        assert data["inserted"] == 1
        assert data["updated"] == 0

        pattern = data["patterns"][0]
        assert pattern["merchant_key"] == "NETFLIX_COM"
        assert pattern["cadence"] == "monthly"
        assert pattern["confidence"] == "medium"
        assert pattern["next_expected_date"] == "2024-04-15"

        response = client.get("/api/v1/recurring", params={"user_id": user_id})
        series = response.json()
        assert len(series) == 1
        assert series[0]["status"] == "pending_confirmation"
        assert series[0]["occurrence_count"] == 3

    def test_detect_nothing(self, client, user_id, make_transaction):
        make_transaction()
        response = client.post("/api/v1/recurring/detect", json={"user_id": user_id})
        assert response.json()["detected"] == 0
        assert response.json()["patterns"] == []
