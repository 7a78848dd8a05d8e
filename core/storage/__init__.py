"""Storage abstraction (local filesystem, in-memory or S3/MinIO)."""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO, Protocol

from core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from core.settings import StorageSettings


class StorageBackend(Protocol):
    # bucket operations
    def create_bucket(self, name: str) -> None:
        ...

    def delete_bucket(self, name: str) -> None:
        ...

    def list_buckets(self) -> list[str]:
        ...

    # object operations
    def put_object(self, bucket: str, key: str, data: BinaryIO) -> None:
        ...

    def get_object(self, bucket: str, key: str) -> BinaryIO:  # caller closes
        ...

    def delete_object(self, bucket: str, key: str) -> None:
        ...

    def list_objects(self, bucket: str) -> list[str]:
        ...


def create_backend(settings: StorageSettings) -> StorageBackend:
    """Build the backend selected by ``settings.backend``."""
    kind = settings.backend
    if kind == "disk":
        from core.storage.local import DiskBackend

        return DiskBackend(settings.root, atomic_writes=settings.atomic_writes)
    if kind == "memory":
        from core.storage.memory import MemoryBackend

        return MemoryBackend()
    if kind == "s3":
        from core.storage.s3 import S3Backend

        s3 = settings.s3
        if s3 is None:
            raise ConfigurationError("storage.backend is 's3' but no storage.s3 section is configured")
        return S3Backend(
            endpoint_url=s3.endpoint_url,
            region=s3.region,
            access_key_id=s3.access_key_id,
            secret_access_key=s3.secret_access_key,
        )
    raise ConfigurationError(f"Unknown storage backend: {kind!r}", {"backend": str(kind)})


__all__ = ["StorageBackend", "create_backend"]
