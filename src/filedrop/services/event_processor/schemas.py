"""
Structural checks applied to validated arrivals.

A check receives the parsed JSON document and returns True when the document
has the shape a route expects. Routes select a check by name through the
``schema`` field of their configuration; callers may also register their own
callables per route path when constructing the ``EventProcessor``.
"""

from typing import Any, Callable, Dict, List

SchemaCheck = Callable[[Any], bool]


def accept_any(document: Any) -> bool:
    """Pass-through check: every well-formed JSON document is accepted."""
    return True


def is_json_object(document: Any) -> bool:
    """Accept only a top-level JSON object."""
    return isinstance(document, dict)


def is_record_collection(document: Any) -> bool:
    """
    Accept a collection of records.

    Either a top-level array, or an object carrying its records in a
    ``rawData`` or ``data`` array.

    Examples:
        >>> is_record_collection([{"id": 1}])
        True
        >>> is_record_collection({"rawData": []})
        True
        >>> is_record_collection({"data": "x"})
        False
    """
    if isinstance(document, list):
        return True
    if isinstance(document, dict):
        return any(isinstance(document.get(field), list) for field in ("rawData", "data"))
    return False


SCHEMA_CHECKS: Dict[str, SchemaCheck] = {
    "any": accept_any,
    "object": is_json_object,
    "records": is_record_collection,
}


def get_schema_check(name: str) -> SchemaCheck:
    """
    Look up a registered check by name.

    Raises:
        KeyError: If no check is registered under ``name``
    """
    return SCHEMA_CHECKS[name]


def get_supported_schemas() -> List[str]:
    """Names of all registered checks."""
    return list(SCHEMA_CHECKS.keys())
