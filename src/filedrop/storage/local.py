"""Local filesystem object store."""

import json
import shutil
from pathlib import Path
from typing import Dict, Optional

from filedrop.services.event_processor.exceptions import ObjectNotFoundError, StorageError
from filedrop.storage.base import ObjectStore

METADATA_DIR = ".metadata"


class LocalObjectStore(ObjectStore):
    """Object store laid out on the local filesystem.

    Objects live at ``{base_path}/{bucket}/{key}``. Custom metadata is kept in
    a JSON sidecar under ``{base_path}/.metadata/{bucket}/{key}.json`` so it
    never shows up inside a bucket.
    """

    scheme = "file"

    def __init__(self, base_path: str | Path = "data/buckets"):
        self.base_path = Path(base_path)

    def _object_path(self, bucket: str, key: str) -> Path:
        root = (self.base_path / bucket).resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise StorageError(f"Invalid object key: {key!r}")
        return path

    def _metadata_path(self, bucket: str, key: str) -> Path:
        return self.base_path / METADATA_DIR / bucket / f"{key}.json"

    def write_object(self, bucket: str, key: str, data: bytes) -> str:
        """Store an object, as a producer upload would. Returns its URI."""
        path = self._object_path(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return self.object_uri(bucket, key)

    def exists(self, bucket: str, key: str) -> bool:
        return self._object_path(bucket, key).is_file()

    async def read_object(self, bucket: str, key: str) -> bytes:
        path = self._object_path(bucket, key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {self.object_uri(bucket, key)}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {self.object_uri(bucket, key)}: {e}") from e

    async def copy_object(
        self,
        bucket: str,
        source_key: str,
        destination_key: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        source = self._object_path(bucket, source_key)
        destination = self._object_path(bucket, destination_key)
        if not source.is_file():
            raise ObjectNotFoundError(f"Object not found: {self.object_uri(bucket, source_key)}")

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
            if metadata:
                metadata_path = self._metadata_path(bucket, destination_key)
                metadata_path.parent.mkdir(parents=True, exist_ok=True)
                metadata_path.write_text(json.dumps(metadata), encoding="utf-8")
        except OSError as e:
            raise StorageError(
                f"Failed to copy {self.object_uri(bucket, source_key)} to {destination_key}: {e}"
            ) from e

    async def delete_object(self, bucket: str, key: str) -> None:
        path = self._object_path(bucket, key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {self.object_uri(bucket, key)}") from e
        except OSError as e:
            raise StorageError(f"Failed to delete {self.object_uri(bucket, key)}: {e}") from e
        self._metadata_path(bucket, key).unlink(missing_ok=True)

    async def get_metadata(self, bucket: str, key: str) -> Dict[str, str]:
        if not self._object_path(bucket, key).is_file():
            raise ObjectNotFoundError(f"Object not found: {self.object_uri(bucket, key)}")
        metadata_path = self._metadata_path(bucket, key)
        if not metadata_path.is_file():
            return {}
        return json.loads(metadata_path.read_text(encoding="utf-8"))

    def get_backend_name(self) -> str:
        return "local"
