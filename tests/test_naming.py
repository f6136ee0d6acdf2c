"""Tests for processed and error key naming."""

from datetime import datetime, timedelta, timezone

from conftest import FIXED_NOW, FIXED_STAMP
from filedrop.services.event_processor import naming


def test_format_timestamp_uses_utc_milliseconds():
    """Test the ISO-8601 rendering used in processed keys."""
    assert naming.format_timestamp(FIXED_NOW) == FIXED_STAMP


def test_format_timestamp_converts_to_utc():
    """Test that aware timestamps in other zones are rendered in UTC."""
    cet = timezone(timedelta(hours=1))
    moment = datetime(2026, 2, 20, 17, 57, 35, 356000, tzinfo=cet)

    assert naming.format_timestamp(moment) == FIXED_STAMP


def test_format_timestamp_treats_naive_as_utc():
    """Test that naive timestamps are not shifted."""
    assert naming.format_timestamp(datetime(2026, 2, 20, 16, 57, 35, 356000)) == FIXED_STAMP


def test_format_timestamp_pads_whole_seconds():
    """Test that milliseconds are always present."""
    moment = datetime(2026, 1, 1, tzinfo=timezone.utc)

    assert naming.format_timestamp(moment) == "2026-01-01T00:00:00.000Z"


def test_processed_key_keeps_original_filename():
    """Test the timestamp-prefixed processed key."""
    key = naming.processed_key("person-full", "data.json", FIXED_NOW)

    assert key == f"person-full/{FIXED_STAMP}-data.json"
    assert naming.is_processed_filename(naming.filename_of(key))


def test_processed_key_appends_extension():
    """Test that extensionless filenames become .json keys."""
    assert naming.processed_key("person-full", "export", FIXED_NOW) == f"person-full/{FIXED_STAMP}-export.json"


def test_processed_key_keeps_other_extensions():
    """Test that existing extensions are left untouched."""
    assert naming.processed_key("person-full", "data.txt", FIXED_NOW).endswith("-data.txt")


def test_error_key():
    """Test the error path naming convention."""
    assert naming.error_key("person-delta", FIXED_NOW) == f"person-delta/errors/invalid-json-{FIXED_STAMP}.json"


def test_filename_of():
    """Test extraction of the last key segment."""
    assert naming.filename_of("a/b/c.json") == "c.json"
    assert naming.filename_of("c.json") == "c.json"
    assert naming.filename_of("a/b/") == ""


def test_is_processed_filename_rejects_plain_names():
    """Test that ordinary uploads are not mistaken for processed ones."""
    assert not naming.is_processed_filename("data.json")
    assert not naming.is_processed_filename("2026-02-20.json")
    assert not naming.is_processed_filename(f"x{FIXED_STAMP}-data.json")
