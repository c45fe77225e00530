"""Tests de contrato HTTP de la API de sensores.

Ejecutar:
    pytest tests/test_api.py -v
"""

import pytest

from sensor_api.storage import SqlKeyValueStore, set_kv_store

from .conftest import BrokenKeyValueStore


def _reading(ph=7.2, ts=None, **extra):
    body = {"pH": ph, "orp": 650.0, "conductivity": 500.0}
    if ts is not None:
        body["timestamp"] = ts
    body.update(extra)
    return body


def _event(state="warning", event_type="WARNING", message="Logic alert - pH change detected"):
    return {
        "type": event_type,
        "message": message,
        "systemState": state,
        "sensorData": {"pH": 7.8, "orp": 650.0, "conductivity": 500.0},
    }


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_ready(self, client):
        assert client.get("/ready").status_code == 200

    def test_not_ready_when_storage_down(self, client):
        set_kv_store(BrokenKeyValueStore())
        resp = client.get("/ready")
        assert resp.status_code == 503

    def test_metrics_exposed(self, client):
        resp = client.get("/metrics/")
        assert resp.status_code == 200
        assert "sensor_api_readings_ingested_total" in resp.text


# =============================================================================
# INGESTA Y CONSULTA DE LECTURAS
# =============================================================================

class TestSensorData:
    def test_ingest_ack(self, client):
        resp = client.post("/sensor-data", json=_reading(7.21, ts=1_700_000_000_000))

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Sensor data received"
        assert body["data"] == {"pH": 7.21, "orp": 650.0, "conductivity": 500.0, "timestamp": 1_700_000_000_000}

    def test_ingest_without_timestamp_uses_receipt_time(self, client):
        resp = client.post("/sensor-data", json=_reading())
        assert resp.json()["data"]["timestamp"] > 1_600_000_000_000

    def test_missing_field_400_and_nothing_stored(self, client):
        body = _reading()
        del body["orp"]

        resp = client.post("/sensor-data", json=body)

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Missing required fields: orp"
        assert client.get("/sensor-data/latest").status_code == 404
        assert client.get("/sensor-data/history").json()["count"] == 0

    def test_non_numeric_400(self, client):
        resp = client.post("/sensor-data", json=_reading(ph="acid"))
        assert resp.status_code == 400

    def test_numeric_string_accepted(self, client):
        resp = client.post("/sensor-data", json=_reading(ph="7.5"))
        assert resp.status_code == 200
        assert resp.json()["data"]["pH"] == 7.5

    def test_negative_values_accepted(self, client):
        resp = client.post("/sensor-data", json=_reading(ph=-0.5, conductivity=-3.0))
        assert resp.status_code == 200

    def test_latest_404_before_first_reading(self, client):
        resp = client.get("/sensor-data/latest")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No sensor data available"

    def test_latest_after_ingest(self, client):
        client.post("/sensor-data", json=_reading(7.0, ts=1000))
        client.post("/sensor-data", json=_reading(7.4, ts=2000))

        resp = client.get("/sensor-data/latest")

        assert resp.status_code == 200
        assert resp.json() == {"pH": 7.4, "orp": 650.0, "conductivity": 500.0, "timestamp": 2000}

    def test_history_newest_first_with_limit(self, client):
        for i, ts in enumerate([3000, 1000, 5000, 2000, 4000]):
            client.post("/sensor-data", json=_reading(7.0 + i / 10, ts=ts))

        body = client.get("/sensor-data/history", params={"limit": 3}).json()

        assert body["count"] == 3
        assert [r["timestamp"] for r in body["data"]] == [5000, 4000, 3000]

    def test_history_default_limit(self, client, monkeypatch):
        monkeypatch.setenv("HISTORY_DEFAULT_LIMIT", "2")
        for ts in range(5):
            client.post("/sensor-data", json=_reading(ts=ts))

        assert client.get("/sensor-data/history").json()["count"] == 2

    def test_history_negative_limit_rejected(self, client):
        assert client.get("/sensor-data/history", params={"limit": -1}).status_code == 422

    def test_duplicate_timestamps_both_kept(self, client):
        client.post("/sensor-data", json=_reading(7.0, ts=1000))
        client.post("/sensor-data", json=_reading(7.0, ts=1000))

        assert client.get("/sensor-data/history").json()["count"] == 2

    @pytest.mark.parametrize("bad_ts", ["NaN", "Infinity", 2**64])
    def test_invalid_timestamp_400(self, client, bad_ts):
        resp = client.post("/sensor-data", json=_reading(ts=bad_ts))

        assert resp.status_code == 400
        assert "timestamp" in resp.json()["detail"]
        assert client.get("/sensor-data/history").json()["count"] == 0

    def test_out_of_range_timestamp_400_on_sql_backend(self, client, sql_engine):
        set_kv_store(SqlKeyValueStore(sql_engine))

        resp = client.post("/sensor-data", json=_reading(ts=2**64))

        assert resp.status_code == 400
        assert client.get("/sensor-data/latest").status_code == 404


class TestStorageFailures:
    @pytest.fixture(autouse=True)
    def broken_store(self, kv_store):
        set_kv_store(BrokenKeyValueStore())

    def test_ingest_500(self, client):
        resp = client.post("/sensor-data", json=_reading())
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Storage error: StorageError"

    def test_debug_errors_append_message(self, client, monkeypatch):
        monkeypatch.setenv("SENSOR_API_DEBUG_ERRORS", "true")
        resp = client.get("/sensor-data/latest")
        assert resp.json()["detail"] == "Storage error: StorageError: backend unreachable"

    @pytest.mark.parametrize("path", ["/sensor-data/latest", "/sensor-data/history", "/event-logs"])
    def test_reads_500(self, client, path):
        assert client.get(path).status_code == 500

    def test_log_event_500(self, client):
        assert client.post("/log-event", json=_event()).status_code == 500


# =============================================================================
# LOG DE EVENTOS
# =============================================================================

class TestEventLogs:
    def test_log_event_ack(self, client):
        resp = client.post("/log-event", json=_event())

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Event logged"
        assert body["data"]["systemState"] == "warning"
        assert body["data"]["sensorData"]["pH"] == 7.8
        assert body["data"]["timestamp"] > 1_600_000_000_000

    def test_log_event_without_sensor_data(self, client):
        payload = _event(state="safe", event_type="SAFE", message="System normal")
        payload["sensorData"] = None
        resp = client.post("/log-event", json=payload)
        assert resp.json()["data"]["sensorData"] is None

    def test_log_event_invalid_state_422(self, client):
        assert client.post("/log-event", json=_event(state="meltdown")).status_code == 422

    def test_state_filter(self, client):
        client.post("/log-event", json=_event())
        client.post("/log-event", json=_event("critical", "CRITICAL_ALERT", "PUMP POWER SEVERED - Dangerous pH detected"))
        client.post("/log-event", json=_event("safe", "SAFE", "System normal"))

        body = client.get("/event-logs", params={"state": "critical"}).json()

        assert body["count"] == 1
        assert all(e["systemState"] == "critical" for e in body["data"])

    def test_all_means_no_filter(self, client):
        client.post("/log-event", json=_event())
        client.post("/log-event", json=_event("safe", "SAFE", "System normal"))

        body = client.get("/event-logs", params={"state": "all", "type": "all"}).json()

        assert body["count"] == 2

    def test_type_and_search_filters(self, client):
        client.post("/log-event", json=_event())
        client.post("/log-event", json=_event("critical", "CRITICAL_ALERT", "PUMP POWER SEVERED - Dangerous pH detected"))

        assert client.get("/event-logs", params={"type": "CRITICAL_ALERT"}).json()["count"] == 1
        assert client.get("/event-logs", params={"search": "logic"}).json()["count"] == 1

    def test_unknown_state_400(self, client):
        assert client.get("/event-logs", params={"state": "meltdown"}).status_code == 400

    def test_limit(self, client):
        for _ in range(4):
            client.post("/log-event", json=_event())
        assert client.get("/event-logs", params={"limit": 2}).json()["count"] == 2


# =============================================================================
# AUTENTICACIÓN
# =============================================================================

class TestBearerAuth:
    @pytest.fixture(autouse=True)
    def token(self, monkeypatch):
        monkeypatch.setenv("SENSOR_API_TOKEN", "s3cret")

    def test_missing_token_401(self, client):
        resp = client.post("/sensor-data", json=_reading())
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Bearer token required"

    def test_wrong_token_401(self, client):
        resp = client.get("/event-logs", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid bearer token"

    def test_rejected_before_storage(self, client):
        client.post("/sensor-data", json=_reading(), headers={"Authorization": "Basic s3cret"})
        latest = client.get("/sensor-data/latest", headers={"Authorization": "Bearer s3cret"})
        assert latest.status_code == 404

    def test_valid_token(self, client):
        resp = client.post("/sensor-data", json=_reading(), headers={"Authorization": "Bearer s3cret"})
        assert resp.status_code == 200

    def test_health_is_public(self, client):
        assert client.get("/health").status_code == 200


def test_production_without_token_500(client, monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    assert client.get("/sensor-data/latest").status_code == 500


def test_monitor_status_404_when_not_embedded(client):
    resp = client.get("/monitor/status")
    assert resp.status_code == 404
