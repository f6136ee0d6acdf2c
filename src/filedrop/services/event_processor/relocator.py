"""
Copy-then-delete relocation of arrivals.

Object stores offer no atomic rename, so a relocation is two separate calls.
If the delete fails after the copy succeeded, the original and the new object
both exist. The new key is recognised as processed and is never dispatched
again, but the leftover original is reported through
``PartialRelocationError`` instead of being ignored.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional
from urllib.parse import quote

from filedrop.services.event_processor import naming
from filedrop.services.event_processor.exceptions import (
    ObjectNotFoundError,
    PartialRelocationError,
    RelocationError,
    StorageError,
)
from filedrop.services.event_processor.models import RouteConfig
from filedrop.storage.base import ObjectStore

logger = logging.getLogger(__name__)

ERROR_REASON_METADATA_KEY = "error-reason"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Relocator:
    """Renames arrivals to their processed key or moves them to the error path."""

    def __init__(self, store: ObjectStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or utc_now

    async def relocate(
        self,
        bucket: str,
        old_key: str,
        new_key: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Move an object to a new key within the bucket.

        Raises:
            ObjectNotFoundError: If the source object no longer exists
            RelocationError: If the copy fails; the original is untouched
            PartialRelocationError: If the original could not be deleted
                after a successful copy
        """
        try:
            await self.store.copy_object(bucket, old_key, new_key, metadata=metadata)
        except ObjectNotFoundError:
            raise
        except StorageError as e:
            logger.error(
                f"Failed to copy object: {e}",
                extra={"bucket": bucket, "old_key": old_key, "new_key": new_key},
            )
            raise RelocationError(
                f"Failed to copy {old_key} to {new_key}: {e}", old_key, new_key
            ) from e

        try:
            await self.store.delete_object(bucket, old_key)
        except StorageError as e:
            logger.error(
                "Copied object but failed to delete the original; both keys now exist",
                extra={
                    "bucket": bucket,
                    "old_key": old_key,
                    "new_key": new_key,
                    "error": str(e),
                },
            )
            raise PartialRelocationError(
                f"Copied {old_key} to {new_key} but failed to delete the original: {e}",
                old_key,
                new_key,
            ) from e

        logger.info(
            f"Relocated {old_key} to {new_key}",
            extra={"bucket": bucket, "old_key": old_key, "new_key": new_key},
        )

    async def normalize(self, bucket: str, key: str, route: RouteConfig) -> str:
        """Rename an arrival to its processed key. Returns the new key."""
        new_key = naming.processed_key(route.path, naming.filename_of(key), self.clock())
        await self.relocate(bucket, key, new_key)
        return new_key

    async def move_to_error(self, bucket: str, key: str, route: RouteConfig, reason: str) -> str:
        """Move a rejected arrival under the route's error path, tagged with the reason.

        Returns the error key.
        """
        error_key = naming.error_key(route.path, self.clock())
        metadata = {ERROR_REASON_METADATA_KEY: quote(reason, safe="")}
        await self.relocate(bucket, key, error_key, metadata=metadata)
        return error_key
