"""Google Cloud Storage backend."""

import asyncio
import logging
from typing import Dict, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from filedrop.services.event_processor.exceptions import ObjectNotFoundError, StorageError
from filedrop.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class GCSObjectStore(ObjectStore):
    """Object store backed by Google Cloud Storage.

    The client library is blocking, so every call runs in a worker thread to
    keep the event loop free.
    """

    scheme = "gs"

    def __init__(self, project_id: str | None = None):
        self.project_id = project_id or None
        self._client: Optional[storage.Client] = None

    def _get_client(self) -> storage.Client:
        """Lazy-load and cache the GCS client."""
        if self._client is None:
            self._client = storage.Client(project=self.project_id)
        return self._client

    async def read_object(self, bucket: str, key: str) -> bytes:
        """Download the full object body."""
        blob = self._get_client().bucket(bucket).blob(key)
        try:
            content = await asyncio.to_thread(blob.download_as_bytes)
        except NotFound as e:
            raise ObjectNotFoundError(f"Object not found: gs://{bucket}/{key}") from e
        except GoogleAPIError as e:
            logger.error(
                "Failed to download object from GCS",
                extra={"bucket": bucket, "object_name": key, "error": str(e)},
            )
            raise StorageError(f"Failed to download gs://{bucket}/{key}: {e}") from e

        logger.debug(
            "Downloaded object from GCS",
            extra={"bucket": bucket, "object_name": key, "size_bytes": len(content)},
        )
        return content

    def _copy(
        self,
        bucket: str,
        source_key: str,
        destination_key: str,
        metadata: Optional[Dict[str, str]],
    ) -> None:
        gcs_bucket = self._get_client().bucket(bucket)
        if not metadata:
            gcs_bucket.copy_blob(gcs_bucket.blob(source_key), gcs_bucket, destination_key)
            return

        # Destination properties replace the source's, so carry them over
        source_blob = gcs_bucket.get_blob(source_key)
        if source_blob is None:
            raise NotFound(f"gs://{bucket}/{source_key}")

        new_blob = gcs_bucket.blob(destination_key)
        new_blob.content_type = source_blob.content_type
        new_blob.metadata = {**(source_blob.metadata or {}), **metadata}

        token, _, _ = new_blob.rewrite(source_blob)
        while token is not None:
            token, _, _ = new_blob.rewrite(source_blob, token=token)

    async def copy_object(
        self,
        bucket: str,
        source_key: str,
        destination_key: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """Server-side copy of an object, attaching custom metadata."""
        try:
            await asyncio.to_thread(self._copy, bucket, source_key, destination_key, metadata)
        except NotFound as e:
            raise ObjectNotFoundError(f"Object not found: gs://{bucket}/{source_key}") from e
        except GoogleAPIError as e:
            raise StorageError(
                f"Failed to copy gs://{bucket}/{source_key} to {destination_key}: {e}"
            ) from e

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object."""
        blob = self._get_client().bucket(bucket).blob(key)
        try:
            await asyncio.to_thread(blob.delete)
        except NotFound as e:
            raise ObjectNotFoundError(f"Object not found: gs://{bucket}/{key}") from e
        except GoogleAPIError as e:
            raise StorageError(f"Failed to delete gs://{bucket}/{key}: {e}") from e

    async def get_metadata(self, bucket: str, key: str) -> Dict[str, str]:
        """Fetch the custom metadata of an object."""
        blob = self._get_client().bucket(bucket).blob(key)
        try:
            await asyncio.to_thread(blob.reload)
        except NotFound as e:
            raise ObjectNotFoundError(f"Object not found: gs://{bucket}/{key}") from e
        except GoogleAPIError as e:
            raise StorageError(f"Failed to read metadata of gs://{bucket}/{key}: {e}") from e
        return dict(blob.metadata or {})

    def get_backend_name(self) -> str:
        return "gcs"
