"""Pytest configuration and shared fixtures."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from filedrop.services.event_processor.dispatcher import ConsumerDispatcher
from filedrop.services.event_processor.models import ArrivalEvent
from filedrop.services.event_processor.routing import load_processor_config
from filedrop.services.event_processor.service import EventProcessor
from filedrop.storage.local import LocalObjectStore

BUCKET = "huron-person-file-drop-dev"
FULL_CONSUMER = "https://consumer.example.com/full"
DELTA_CONSUMER = "https://consumer.example.com/delta"
FIXED_NOW = datetime(2026, 2, 20, 16, 57, 35, 356000, tzinfo=timezone.utc)
FIXED_STAMP = "2026-02-20T16:57:35.356Z"

VALID_PERSON_DATA = {
    "requestId": "test-12345",
    "timestamp": "2026-02-20T12:00:00Z",
    "recordCount": 1,
    "rawData": [
        {
            "personid": "U12345678",
            "personBasic": {"firstName": "John", "lastName": "Doe"},
        }
    ],
}


def make_arrival(key: str, bucket: str = BUCKET) -> ArrivalEvent:
    """Build an arrival notification for an object key."""
    return ArrivalEvent(
        origin_location=bucket,
        object_key=key,
        notification_timestamp=FIXED_NOW,
        event_id=f"evt-{key}",
    )


@pytest.fixture
def bucket_config() -> dict:
    """Routing table with a forwarding route and a validating route."""
    return {
        "name": BUCKET,
        "subdirectories": [
            {
                "path": "person-full",
                "objectLifetimeDays": 7,
                "consumerId": FULL_CONSUMER,
            },
            {
                "path": "person-delta",
                "objectLifetimeDays": 3,
                "validateArrivals": True,
                "consumerId": DELTA_CONSUMER,
            },
        ],
    }


@pytest.fixture
def processor_config(bucket_config):
    return load_processor_config(json.dumps(bucket_config))


@pytest.fixture
def store(tmp_path):
    """Local object store rooted in a temporary directory."""
    return LocalObjectStore(base_path=tmp_path)


@pytest.fixture
def consumer_requests():
    """Requests received by the mocked consumers."""
    return []


@pytest.fixture
def consumer_status():
    """Status code the mocked consumers answer with; tests may change it."""
    return {"code": 202}


@pytest.fixture
def dispatcher(consumer_requests, consumer_status):
    """Dispatcher whose HTTP client talks to an in-memory consumer."""

    def handler(request: httpx.Request) -> httpx.Response:
        consumer_requests.append(request)
        return httpx.Response(consumer_status["code"], json={"status": "accepted"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ConsumerDispatcher(
        scheme="file",
        processor_version="1.0.0",
        client=client,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def processor(processor_config, store, dispatcher):
    """Event processor wired to the local store and mocked consumers."""
    return EventProcessor(processor_config, store, dispatcher, clock=lambda: FIXED_NOW)
