"""Abstract object store interface."""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class ObjectStore(ABC):
    """Abstract base class for object store backends.

    Every operation is addressed by bucket name and object key. Implementations
    raise ``ObjectNotFoundError`` for missing objects and ``StorageError`` for
    any other backend failure.
    """

    scheme: str = ""

    def object_uri(self, bucket: str, key: str) -> str:
        """Build the canonical address of an object, e.g. ``gs://bucket/key``."""
        return f"{self.scheme}://{bucket}/{key}"

    @abstractmethod
    async def read_object(self, bucket: str, key: str) -> bytes:
        """Download the full body of an object.

        Args:
            bucket: Bucket name
            key: Object key

        Returns:
            Object content
        """
        pass

    @abstractmethod
    async def copy_object(
        self,
        bucket: str,
        source_key: str,
        destination_key: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """Copy an object within a bucket.

        Args:
            bucket: Bucket name
            source_key: Key of the object to copy
            destination_key: Key of the new object
            metadata: Custom metadata to attach to the new object
        """
        pass

    @abstractmethod
    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object."""
        pass

    @abstractmethod
    async def get_metadata(self, bucket: str, key: str) -> Dict[str, str]:
        """Return the custom metadata attached to an object."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
