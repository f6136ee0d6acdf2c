"""Routing table loading and arrival classification."""

import json
import logging
from typing import Iterable, Optional, Tuple

from pydantic import ValidationError

from filedrop.services.event_processor import naming
from filedrop.services.event_processor.exceptions import ConfigurationError
from filedrop.services.event_processor.models import ProcessorConfig, RouteConfig

logger = logging.getLogger(__name__)


def load_processor_config(raw: str, default_bucket: str = "") -> ProcessorConfig:
    """
    Parse the routing table supplied at process start.

    Args:
        raw: JSON blob, ``{"name": ..., "subdirectories": [...]}``
        default_bucket: Bucket to expect when the blob carries no name

    Returns:
        Immutable processor configuration

    Raises:
        ConfigurationError: If the blob is not JSON or the table is invalid
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"BUCKET_CONFIG is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("BUCKET_CONFIG must be a JSON object")

    if not data.get("name") and default_bucket:
        data = {**data, "name": default_bucket}

    try:
        config = ProcessorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid routing table in BUCKET_CONFIG: {e}") from e

    logger.info(
        "Routing table loaded",
        extra={
            "bucket": config.bucket_name,
            "routes": [route.path for route in config.routes],
        },
    )
    return config


class ArrivalClassifier:
    """Maps object keys onto routes and recognises keys that must not be reprocessed."""

    def __init__(self, routes: Iterable[RouteConfig]):
        self.routes: Tuple[RouteConfig, ...] = tuple(routes)

    def classify(self, key: str) -> Optional[RouteConfig]:
        """
        Find the route an object key belongs to.

        A route matches when the key starts with ``"{path}/"``; the first
        match in declaration order wins.
        """
        for route in self.routes:
            if key.startswith(f"{route.path}/"):
                return route
        return None

    def is_already_processed(self, key: str) -> bool:
        """
        Whether a key was produced by the processor itself.

        True for filenames carrying the processed-timestamp prefix and for
        anything under a route's error path. Relocation triggers fresh
        notifications for these keys; acting on them would loop forever.
        """
        if naming.is_processed_filename(naming.filename_of(key)):
            return True
        return any(key.startswith(naming.error_prefix(route.path)) for route in self.routes)
