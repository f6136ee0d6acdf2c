"""Tests for structured log formatting."""

import json
import logging

from filedrop.core.logging import CloudLoggingFormatter, object_uri_context


def _record(msg: str = "Record processed", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("filedrop.test", level, __file__, 10, msg, None, None, func="handler")
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_format_is_single_line_json():
    output = CloudLoggingFormatter().format(_record())

    assert "\n" not in output
    entry = json.loads(output)
    assert entry["severity"] == "INFO"
    assert entry["message"] == "Record processed"
    assert entry["logger"] == "filedrop.test"
    assert entry["function"] == "handler"
    assert entry["timestamp"].endswith("Z")


def test_extra_fields_are_included():
    entry = json.loads(CloudLoggingFormatter().format(_record(object_key="a/b.json", outcome="dispatched")))

    assert entry["object_key"] == "a/b.json"
    assert entry["outcome"] == "dispatched"
    assert "msg" not in entry
    assert "args" not in entry


def test_object_uri_from_context():
    token = object_uri_context.set("gs://bucket/a/b.json")
    try:
        entry = json.loads(CloudLoggingFormatter().format(_record()))
    finally:
        object_uri_context.reset(token)

    assert entry["object_uri"] == "gs://bucket/a/b.json"
    assert "object_uri" not in json.loads(CloudLoggingFormatter().format(_record()))


def test_exception_details():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        import sys

        record = _record(level=logging.ERROR)
        record.exc_info = sys.exc_info()

    entry = json.loads(CloudLoggingFormatter().format(record))

    assert entry["severity"] == "ERROR"
    assert entry["exception_type"] == "RuntimeError"
    assert entry["exception_message"] == "boom"
    assert "Traceback" in entry["exception"]
