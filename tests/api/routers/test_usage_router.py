"""Tests for the usage router."""

import asyncio

from appfit.repositories.base import DailyUsageRecord

DEVICE_ID = "device-0123456789"

HEADERS = {"X-Device-Id": DEVICE_ID}


class TestGetUsage:
    """Tests for GET /api/v1/usage."""

    def test_fresh_device_has_full_quota(self, client):
        response = client.get("/api/v1/usage", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["scope"] == "device"
        assert data["day"] == "2024-01-01"
        assert data["used"] == 0
        assert data["limit"] == 10
        assert data["remaining"] == 10
        assert data["can_submit"] is True
        assert data["has_reached_limit"] is False
        assert data["level"] == "ok"

    def test_missing_device_id_is_rejected(self, client):
        response = client.get("/api/v1/usage")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_IDENTITY"

    def test_malformed_device_id_is_rejected(self, client):
        response = client.get("/api/v1/usage", headers={"X-Device-Id": "bad id"})

        assert response.status_code == 400

    def test_previous_day_usage_is_ignored(self, client, device_store):
        asyncio.run(
            device_store.save(DailyUsageRecord(identity=DEVICE_ID, day="2023-12-31", count=10))
        )

        data = client.get("/api/v1/usage", headers=HEADERS).json()

        assert data["remaining"] == 10
        assert data["can_submit"] is True

    def test_messages_trimmed_flag(self, client):
        data = client.get("/api/v1/usage?history_length=51", headers=HEADERS).json()
        assert data["messages_trimmed"] is True

        data = client.get("/api/v1/usage?history_length=10", headers=HEADERS).json()
        assert data["messages_trimmed"] is False

    def test_reading_usage_does_not_count(self, client):
        for _ in range(3):
            client.get("/api/v1/usage", headers=HEADERS)

        assert client.get("/api/v1/usage", headers=HEADERS).json()["used"] == 0

    def test_authenticated_uses_account_scope(self, authenticated_client):
        data = authenticated_client.get("/api/v1/usage").json()

        assert data["scope"] == "account"
        assert data["remaining"] == 10


class TestRecordSubmission:
    """Tests for POST /api/v1/usage/submissions."""

    def test_submission_counts(self, client):
        response = client.post("/api/v1/usage/submissions", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data == {
            "accepted": True,
            "new_count": 1,
            "remaining": 9,
            "limit": 10,
            "scope": "device",
        }

    def test_eleventh_submission_is_rejected(self, client):
        counts = [
            client.post("/api/v1/usage/submissions", headers=HEADERS).json()["new_count"]
            for _ in range(10)
        ]
        assert counts == list(range(1, 11))

        response = client.post("/api/v1/usage/submissions", headers=HEADERS)

        assert response.status_code == 429
        error = response.json()["error"]
        assert error["code"] == "USAGE_LIMIT_EXCEEDED"
        assert error["details"] == {"current": 10, "limit": 10, "remaining": 0}

        usage = client.get("/api/v1/usage", headers=HEADERS).json()
        assert usage["used"] == 10
        assert usage["has_reached_limit"] is True
        assert usage["level"] == "critical"

    def test_quota_resets_next_day(self, client, test_clock):
        for _ in range(10):
            client.post("/api/v1/usage/submissions", headers=HEADERS)
        assert client.post("/api/v1/usage/submissions", headers=HEADERS).status_code == 429

        test_clock.advance()

        response = client.post("/api/v1/usage/submissions", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["new_count"] == 1

    def test_account_and_device_counters_are_independent(
        self, authenticated_client, account_store, device_store
    ):
        authenticated_client.post("/api/v1/usage/submissions", headers=HEADERS)

        assert asyncio.run(account_store.load("acct-0001")).count == 1
        assert asyncio.run(device_store.load(DEVICE_ID)) is None

    def test_response_carries_request_id(self, client):
        response = client.post(
            "/api/v1/usage/submissions", headers={**HEADERS, "X-Request-ID": "req-123"}
        )

        assert response.headers["X-Request-ID"] == "req-123"
