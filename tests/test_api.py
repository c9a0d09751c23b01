"""
HTTP tests for the swap session host.
"""

import time

import pytest
from fastapi.testclient import TestClient

from currency_swap.config import Settings
from currency_swap.main import create_app
from currency_swap.store import SessionStore
from tests.fakes.manual_scheduler import ManualScheduler


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def client(scheduler):
    settings = Settings(debounce_seconds=0.3, log_level="WARNING")
    app = create_app(settings, SessionStore(scheduler_factory=lambda: scheduler))
    with TestClient(app) as client:
        yield client


def open_session(client, query=""):
    response = client.post(f"/api/v1/swaps{query}")
    assert response.status_code == 201
    return response.json()


class TestSessions:
    def test_open_with_query_pair(self, client):
        body = open_session(client, "?from=GBP&to=AUD")
        assert body["from"] == {"currency": "GBP", "amount": ""}
        assert body["to"] == {"currency": "AUD", "amount": ""}
        assert body["location"] == "/swap?from=GBP&to=AUD"
        assert body["error"] == []
        assert body["receipt"] is None

    def test_unknown_query_currency_falls_back(self, client):
        body = open_session(client, "?from=XYZ")
        assert body["from"]["currency"] == "MYR"
        assert body["to"]["currency"] == "EUR"

    def test_get_and_close(self, client):
        session_id = open_session(client)["session_id"]
        assert client.get(f"/api/v1/swaps/{session_id}").status_code == 200
        assert client.delete(f"/api/v1/swaps/{session_id}").status_code == 204
        response = client.get(f"/api/v1/swaps/{session_id}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unknown_session(self, client):
        response = client.put("/api/v1/swaps/nope/from-amount", json={"amount": "1"})
        assert response.status_code == 404


class TestOperations:
    def test_amount_edit_is_debounced(self, client, scheduler):
        session_id = open_session(client)["session_id"]
        body = client.put(
            f"/api/v1/swaps/{session_id}/from-amount", json={"amount": "1,000"}
        ).json()
        assert body["from"]["amount"] == "1000"
        assert body["to"]["amount"] == ""
        assert body["is_to_amount_calculating"] is True

        scheduler.advance(0.3)
        body = client.get(f"/api/v1/swaps/{session_id}").json()
        assert float(body["to"]["amount"]) == pytest.approx(1000 / 4.375 * 0.899038, abs=1e-6)
        assert body["is_to_amount_calculating"] is False

    def test_to_amount_sets_fee(self, client):
        session_id = open_session(client)["session_id"]
        body = client.put(f"/api/v1/swaps/{session_id}/to-amount", json={"amount": "100"}).json()
        assert body["fee"] == "1"
        assert body["receive_amount"] == "99"
        assert body["is_from_amount_calculating"] is True

    def test_malformed_amount_rejected(self, client):
        session_id = open_session(client)["session_id"]
        response = client.put(f"/api/v1/swaps/{session_id}/from-amount", json={"amount": "12a"})
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_amount"

    def test_missing_body_field(self, client):
        session_id = open_session(client)["session_id"]
        response = client.put(f"/api/v1/swaps/{session_id}/from-amount", json={})
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_currency_collision_uses_fallback(self, client):
        session_id = open_session(client)["session_id"]
        body = client.put(
            f"/api/v1/swaps/{session_id}/from-currency", json={"currency": "EUR"}
        ).json()
        assert body["from"]["currency"] == "EUR"
        assert body["to"]["currency"] == "HKD"
        assert body["location"] == "/swap?from=EUR&to=HKD"

    def test_unsupported_currency(self, client):
        session_id = open_session(client)["session_id"]
        response = client.put(
            f"/api/v1/swaps/{session_id}/to-currency", json={"currency": "XYZ"}
        )
        assert response.status_code == 422
        assert response.json()["error"] == "unsupported_currency"

    def test_swap(self, client, scheduler):
        session_id = open_session(client)["session_id"]
        client.put(f"/api/v1/swaps/{session_id}/from-amount", json={"amount": "50"})
        scheduler.advance(0.3)
        body = client.post(f"/api/v1/swaps/{session_id}/swap").json()
        assert body["from"] == {"currency": "EUR", "amount": "50"}
        assert body["to"]["currency"] == "MYR"
        assert body["current_rate"] == pytest.approx(4.375 / 0.899038)


class TestExchange:
    def test_blocked_without_amounts(self, client):
        session_id = open_session(client)["session_id"]
        response = client.post(f"/api/v1/swaps/{session_id}/exchange")
        assert response.status_code == 409
        assert response.json()["error"] == "exchange_blocked"

    def test_blocked_with_validation_error(self, client, scheduler):
        session_id = open_session(client)["session_id"]
        client.put(f"/api/v1/swaps/{session_id}/from-amount", json={"amount": "0.000001"})
        scheduler.advance(0.3)
        response = client.post(f"/api/v1/swaps/{session_id}/exchange")
        assert response.status_code == 409

    def test_exchange_records_receipt(self, client):
        session_id = open_session(client)["session_id"]
        client.put(f"/api/v1/swaps/{session_id}/from-amount", json={"amount": "100"})
        client.put(f"/api/v1/swaps/{session_id}/to-amount", json={"amount": "100"})
        body = client.post(f"/api/v1/swaps/{session_id}/exchange").json()
        assert body["receipt"] == {
            "exchanged": "100",
            "exchanged_currency": "MYR",
            "received": "99",
            "received_currency": "EUR",
        }


class TestMeta:
    def test_currencies(self, client):
        body = client.get("/api/v1/currencies").json()
        assert body["currencies"][0] == "HKD"
        assert body["rates"]["MYR"] == 4.375
        assert body["fee_percent"] == 1

    def test_health(self, client):
        open_session(client)
        assert client.get("/health").json() == {"status": "ok", "sessions": 1}

    def test_unknown_route(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestThreadedHost:
    def test_thread_scheduler_recomputes_counterpart(self):
        settings = Settings(scheduler="thread", debounce_seconds=0.01, log_level="WARNING")
        with TestClient(create_app(settings)) as client:
            session_id = open_session(client)["session_id"]
            client.put(f"/api/v1/swaps/{session_id}/from-amount", json={"amount": "100"})
            deadline = time.monotonic() + 2
            body = client.get(f"/api/v1/swaps/{session_id}").json()
            while body["to"]["amount"] == "" and time.monotonic() < deadline:
                time.sleep(0.02)
                body = client.get(f"/api/v1/swaps/{session_id}").json()
        assert float(body["to"]["amount"]) == pytest.approx(100 * 0.899038 / 4.375, abs=1e-6)
        assert not body["is_to_amount_calculating"]
