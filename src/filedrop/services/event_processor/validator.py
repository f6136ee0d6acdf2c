"""Content validation for routes that check their arrivals."""

import json
import logging
from typing import Any

from filedrop.services.event_processor.exceptions import ContentSchemaError, ContentSyntaxError
from filedrop.services.event_processor.schemas import SchemaCheck, accept_any
from filedrop.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class ContentValidator:
    """Downloads an arrival and checks it is well-formed JSON of the expected shape.

    The whole object is held in memory while it is parsed, so routes that
    validate large files need a matching memory and timeout budget.
    """

    def __init__(self, store: ObjectStore):
        self.store = store

    async def validate(self, bucket: str, key: str, schema_check: SchemaCheck = accept_any) -> Any:
        """
        Validate an object's content.

        Args:
            bucket: Bucket name
            key: Object key
            schema_check: Structural predicate the parsed document must satisfy

        Returns:
            The parsed JSON document

        Raises:
            ContentSyntaxError: If the body is not valid JSON
            ContentSchemaError: If the document fails the structural check
            StorageError: If the object cannot be downloaded
        """
        body = await self.store.read_object(bucket, key)

        try:
            document = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(
                "Arrival is not valid JSON",
                extra={"bucket": bucket, "object_key": key, "size_bytes": len(body), "error": str(e)},
            )
            raise ContentSyntaxError(f"Invalid JSON: {e}") from e

        check_name = getattr(schema_check, "__name__", type(schema_check).__name__)
        try:
            matches = schema_check(document)
        except Exception as e:
            logger.warning(
                "Structural check raised on arrival content",
                extra={"bucket": bucket, "object_key": key, "schema_check": check_name, "error": str(e)},
            )
            raise ContentSchemaError(
                f"Schema validation failed: '{check_name}' raised {type(e).__name__}: {e}"
            ) from e

        if not matches:
            logger.warning(
                "Arrival failed structural check",
                extra={"bucket": bucket, "object_key": key, "schema_check": check_name},
            )
            raise ContentSchemaError(
                f"Schema validation failed: content does not satisfy '{check_name}'"
            )

        logger.info(
            "Arrival content validated",
            extra={"bucket": bucket, "object_key": key, "size_bytes": len(body), "schema_check": check_name},
        )
        return document
