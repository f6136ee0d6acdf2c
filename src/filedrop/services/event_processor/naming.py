"""
Object key naming conventions shared by the classifier and the relocator.

Processed objects keep their original filename behind an ISO-8601 UTC
timestamp with millisecond precision:

    person-full/data.json -> person-full/2026-02-20T16:57:35.356Z-data.json

Rejected objects move under the route's error path:

    person-full/errors/invalid-json-2026-02-20T16:57:35.356Z.json

Both sides must use the helpers below; a key generated here is exactly what
``is_processed_filename`` recognises.
"""

import re
from datetime import datetime, timezone

PROCESSED_FILENAME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T[\d:.]+Z-")

ERRORS_DIR = "errors"
ERROR_FILE_PREFIX = "invalid-json"
DEFAULT_EXTENSION = ".json"


def format_timestamp(moment: datetime) -> str:
    """
    Render a timestamp as ISO-8601 UTC with milliseconds and a ``Z`` suffix.

    Naive datetimes are taken to be UTC.

    Examples:
        >>> format_timestamp(datetime(2026, 2, 20, 16, 57, 35, 356000, tzinfo=timezone.utc))
        '2026-02-20T16:57:35.356Z'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def filename_of(key: str) -> str:
    """Last path segment of an object key."""
    return key.rsplit("/", 1)[-1]


def is_processed_filename(filename: str) -> bool:
    """Whether a filename carries the processed-timestamp prefix."""
    return PROCESSED_FILENAME_PATTERN.match(filename) is not None


def error_prefix(route_path: str) -> str:
    """Key prefix of a route's error path."""
    return f"{route_path}/{ERRORS_DIR}/"


def processed_key(route_path: str, filename: str, moment: datetime) -> str:
    """
    Build the canonical processed key for an arrival.

    Filenames without an extension get ``.json`` appended so consumers always
    receive a JSON-named object.
    """
    if "." not in filename:
        filename = f"{filename}{DEFAULT_EXTENSION}"
    return f"{route_path}/{format_timestamp(moment)}-{filename}"


def error_key(route_path: str, moment: datetime) -> str:
    """Build the key a rejected arrival is moved to."""
    return f"{error_prefix(route_path)}{ERROR_FILE_PREFIX}-{format_timestamp(moment)}{DEFAULT_EXTENSION}"
