"""Tests for health/readiness, ledger audit, metrics and app lifecycle."""
from fastapi.testclient import TestClient

from cardbridge.main import create_app


def test_health(test_settings, broker):
    with TestClient(create_app(test_settings, broker=broker)) as client:
        resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_ready_when_broker_connected(test_settings, broker):
    with TestClient(create_app(test_settings, broker=broker)) as client:
        resp = client.get("/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ready", "broker": "connected", "clients": 0}


def test_not_ready_when_broker_down(test_settings, offline_broker):
    with TestClient(create_app(test_settings, broker=offline_broker)) as client:
        resp = client.get("/ready")
    assert resp.status_code == 503
    assert resp.json()["status"] == "not_ready"


def test_lifespan_starts_and_stops_broker(test_settings, broker):
    with TestClient(create_app(test_settings, broker=broker)):
        assert broker.started is True
    assert broker.stopped is True


def test_broker_not_started_when_disabled(test_settings, broker):
    settings = test_settings.model_copy(update={"mqtt_enabled": False})
    with TestClient(create_app(settings, broker=broker)):
        assert broker.started is False


def test_ledger_empty_and_unknown_uid(test_settings, broker):
    with TestClient(create_app(test_settings, broker=broker)) as client:
        assert client.get("/ledger").json() == {"count": 0, "balances": {}}
        assert client.get("/ledger/NOPE").status_code == 404


def test_ledger_lists_confirmed_balances(test_settings, broker):
    with TestClient(create_app(test_settings, broker=broker)) as client:
        client.post("/topup", json={"uid": "A1", "amount": 5, "currentBalance": 10})
        resp = client.get("/ledger")
    assert resp.json() == {"count": 1, "balances": {"A1": 15}}


def test_metrics_exposed(test_settings, broker):
    with TestClient(create_app(test_settings, broker=broker)) as client:
        client.post("/topup", json={"uid": "A1", "amount": 5, "currentBalance": 10})
        resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "topups_total" in resp.text


def test_frontend_served_when_directory_exists(tmp_path, test_settings, broker):
    frontend = tmp_path / "frontend"
    frontend.mkdir()
    (frontend / "index.html").write_text("<html>card bridge</html>")
    settings = test_settings.model_copy(update={"frontend_dir": str(frontend)})

    with TestClient(create_app(settings, broker=broker)) as client:
        page = client.get("/")
        health = client.get("/health")

    assert page.status_code == 200
    assert "card bridge" in page.text
    assert health.json() == {"status": "ok"}
