"""Object store backends."""

from filedrop.storage.base import ObjectStore
from filedrop.storage.gcs import GCSObjectStore
from filedrop.storage.local import LocalObjectStore


def get_object_store(backend: str, *, project_id: str = "", base_path: str = "data/buckets") -> ObjectStore:
    """Create the object store selected by the STORAGE_BACKEND setting."""
    if backend == "gcs":
        return GCSObjectStore(project_id=project_id)
    if backend == "local":
        return LocalObjectStore(base_path=base_path)
    raise ValueError(f"Unknown storage backend: {backend!r} (expected 'gcs' or 'local')")


__all__ = ["ObjectStore", "GCSObjectStore", "LocalObjectStore", "get_object_store"]
