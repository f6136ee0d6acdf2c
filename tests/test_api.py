"""Tests for the notification intake endpoint."""

import base64
import json

import pytest
from fastapi.testclient import TestClient

from conftest import BUCKET, DELTA_CONSUMER, FIXED_STAMP, FULL_CONSUMER
from filedrop.api.v1.routes_events import get_event_processor
from filedrop.main import app


def _cloud_event(name: str, bucket: str = BUCKET) -> dict:
    return {
        "specversion": "1.0",
        "type": "google.cloud.storage.object.v1.finalized",
        "source": f"//storage.googleapis.com/projects/_/buckets/{bucket}",
        "id": f"evt-{name}",
        "time": "2026-02-23T04:51:05.885Z",
        "data": {"bucket": bucket, "name": name},
    }


@pytest.fixture
def client(processor):
    app.dependency_overrides[get_event_processor] = lambda: processor
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_cloud_event_is_dispatched(client, store, consumer_requests):
    """Test a CloudEvent for a routed object end to end."""
    store.write_object(BUCKET, "person-full/data.json", b"{}")

    response = client.post("/", json=_cloud_event("person-full/data.json"))

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "processed"
    assert data["received"] == 1
    assert data["outcomes"] == [
        {
            "kind": "dispatched",
            "final_key": f"person-full/{FIXED_STAMP}-data.json",
            "consumer_id": FULL_CONSUMER,
        }
    ]
    assert len(consumer_requests) == 1
    assert store.exists(BUCKET, f"person-full/{FIXED_STAMP}-data.json")


def test_batch_with_mixed_records(client, store, consumer_requests):
    """Test that each record of a batch gets its own outcome."""
    store.write_object(BUCKET, "person-delta/bad.json", b"{not json")
    store.write_object(BUCKET, "person-delta/good.json", b"[]")

    response = client.post(
        "/",
        json=[
            _cloud_event("person-delta/bad.json"),
            _cloud_event("root.json"),
            {"kind": "storage#object"},
            _cloud_event("person-delta/good.json"),
        ],
    )

    assert response.status_code == 200
    data = response.json()
    assert data["received"] == 3
    assert len(data["rejected"]) == 1
    assert [outcome["kind"] for outcome in data["outcomes"]] == [
        "moved_to_error",
        "skipped",
        "dispatched",
    ]
    assert data["outcomes"][0]["error_key"] == f"person-delta/errors/invalid-json-{FIXED_STAMP}.json"
    assert [str(r.url) for r in consumer_requests] == [DELTA_CONSUMER]


def test_pubsub_push_envelope(client, store):
    """Test a Pub/Sub push subscription delivery."""
    store.write_object(BUCKET, "person-full/data.json", b"{}")
    notification = {"kind": "storage#object", "bucket": BUCKET, "name": "person-full/data.json"}
    envelope = {
        "message": {
            "attributes": {"eventType": "OBJECT_FINALIZE"},
            "data": base64.b64encode(json.dumps(notification).encode()).decode(),
            "messageId": "1",
        }
    }

    response = client.post("/", json=envelope)

    assert response.status_code == 200
    assert response.json()["outcomes"][0]["kind"] == "dispatched"


def test_failures_do_not_change_status_code(client):
    """Test that per-record failures are reported in the body."""
    response = client.post("/", json=_cloud_event("person-full/data.json", bucket="other-bucket"))

    assert response.status_code == 200
    outcome = response.json()["outcomes"][0]
    assert outcome["kind"] == "failed"
    assert outcome["error_type"] == "ConfigurationMismatchError"


def test_invalid_json_body(client):
    """Test that a non-JSON body is a client error."""
    response = client.post("/", content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "Invalid request" in response.json()["detail"]
