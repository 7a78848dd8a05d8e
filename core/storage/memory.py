from __future__ import annotations

import io
import shutil
import threading
from typing import BinaryIO

from loguru import logger

from core.exceptions import BucketNotFoundError, ObjectNotFoundError
from core.storage.naming import validate_bucket_name, validate_key


class MemoryBackend:
    """Process-local backend keeping every object in a dict.

    Nothing survives a restart. Useful for tests and throwaway servers.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}
        self._lock = threading.Lock()

    def create_bucket(self, name: str) -> None:
        validate_bucket_name(name)
        with self._lock:
            self._buckets.setdefault(name, {})

    def delete_bucket(self, name: str) -> None:
        validate_bucket_name(name)
        with self._lock:
            removed = self._buckets.pop(name, None)
        if removed is not None:
            logger.info("Deleted bucket {bucket} ({count} objects)", bucket=name, count=len(removed))

    def list_buckets(self) -> list[str]:
        with self._lock:
            return list(self._buckets)

    def put_object(self, bucket: str, key: str, data: BinaryIO) -> None:
        validate_bucket_name(bucket)
        validate_key(key)
        buffer = io.BytesIO()
        shutil.copyfileobj(data, buffer)
        with self._lock:
            self._buckets.setdefault(bucket, {})[key] = buffer.getvalue()
        logger.debug("Stored object {bucket}/{key}", bucket=bucket, key=key)

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        validate_bucket_name(bucket)
        validate_key(key)
        with self._lock:
            payload = self._buckets.get(bucket, {}).get(key)
        if payload is None:
            target = f"{bucket}/{key}"
            raise ObjectNotFoundError(f"open object {target}: not found", operation="open object", target=target)
        return io.BytesIO(payload)

    def delete_object(self, bucket: str, key: str) -> None:
        validate_bucket_name(bucket)
        validate_key(key)
        with self._lock:
            objects = self._buckets.get(bucket, {})
            if key not in objects:
                target = f"{bucket}/{key}"
                raise ObjectNotFoundError(
                    f"delete object {target}: not found", operation="delete object", target=target
                )
            del objects[key]

    def list_objects(self, bucket: str) -> list[str]:
        validate_bucket_name(bucket)
        with self._lock:
            if bucket not in self._buckets:
                raise BucketNotFoundError(
                    f"list objects {bucket}: bucket not found", operation="list objects", target=bucket
                )
            return list(self._buckets[bucket])


__all__ = ["MemoryBackend"]
