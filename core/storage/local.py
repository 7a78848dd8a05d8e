from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from core.exceptions import (
    BucketNotFoundError,
    ConfigurationError,
    InvalidNameError,
    NotFoundError,
    ObjectNotFoundError,
    SosError,
    StorageIOError,
)
from core.storage.naming import split_key, validate_bucket_name

STAGING_DIR = ".staging"
COPY_CHUNK_SIZE = 64 * 1024


@contextmanager
def _os_errors(operation: str, target: str, not_found: type[NotFoundError] = ObjectNotFoundError) -> Iterator[None]:
    try:
        yield
    except SosError:
        raise
    except FileNotFoundError as exc:
        raise not_found(f"{operation} {target}: not found", operation=operation, target=target) from exc
    except OSError as exc:
        reason = exc.strerror or str(exc)
        raise StorageIOError(
            f"{operation} {target}: {reason}", operation=operation, target=target, original_error=exc
        ) from exc


class DiskBackend:
    """Buckets are directories under ``root``, keys are paths inside them.

    A key containing ``/`` creates nested directories. With ``atomic_writes``
    enabled, uploads land in ``root/.staging`` first and are moved into place
    with ``os.replace``; otherwise the target file is truncated and written in
    place.
    """

    def __init__(self, root: Path | str, *, atomic_writes: bool = True) -> None:
        self.root = Path(root)
        self.atomic_writes = atomic_writes
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            if atomic_writes:
                self._staging.mkdir(exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"creating root dir {self.root}: {exc}", {"root": str(self.root)}) from exc
        if not self.root.is_dir():
            raise ConfigurationError(f"storage root {self.root} is not a directory", {"root": str(self.root)})

    @property
    def _staging(self) -> Path:
        return self.root / STAGING_DIR

    def _bucket_path(self, name: str) -> Path:
        return self.root / validate_bucket_name(name)

    def _object_path(self, bucket: str, key: str) -> Path:
        bucket_path = self._bucket_path(bucket)
        path = bucket_path.joinpath(*split_key(key))
        # symlinks inside the bucket may still point elsewhere
        resolved_bucket = bucket_path.resolve()
        resolved = path.resolve()
        if resolved == resolved_bucket or not resolved.is_relative_to(resolved_bucket):
            raise InvalidNameError(f"object key escapes bucket {bucket!r}: {key!r}", {"key": key})
        return path

    # bucket operations

    def create_bucket(self, name: str) -> None:
        path = self._bucket_path(name)
        with _os_errors("create bucket", name):
            path.mkdir(parents=True, exist_ok=True)
        logger.debug("Bucket ready: {bucket}", bucket=name)

    def delete_bucket(self, name: str) -> None:
        path = self._bucket_path(name)
        if not path.exists() and not path.is_symlink():
            logger.debug("Delete of missing bucket {bucket} ignored", bucket=name)
            return
        with _os_errors("delete bucket", name, BucketNotFoundError):
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        logger.info("Deleted bucket {bucket}", bucket=name)

    def list_buckets(self) -> list[str]:
        buckets: list[str] = []
        with _os_errors("list buckets", str(self.root), BucketNotFoundError):
            with os.scandir(self.root) as entries:
                for entry in entries:
                    if entry.name.startswith("."):
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        buckets.append(entry.name)
        return buckets

    # object operations

    def put_object(self, bucket: str, key: str, data: BinaryIO) -> None:
        path = self._object_path(bucket, key)
        target = f"{bucket}/{key}"
        with _os_errors("ensure bucket dir", bucket):
            self._bucket_path(bucket).mkdir(parents=True, exist_ok=True)
        with _os_errors("make object subdir", target):
            path.parent.mkdir(parents=True, exist_ok=True)
        with _os_errors("write object", target):
            if self.atomic_writes:
                self._write_atomic(path, data)
            else:
                with open(path, "wb") as out:
                    shutil.copyfileobj(data, out, COPY_CHUNK_SIZE)
        logger.info("Stored object {target}", target=target)

    def _write_atomic(self, path: Path, data: BinaryIO) -> None:
        self._staging.mkdir(exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._staging, prefix="upload-")
        try:
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(data, out, COPY_CHUNK_SIZE)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        path = self._object_path(bucket, key)
        target = f"{bucket}/{key}"
        with _os_errors("open object", target):
            try:
                return open(path, "rb")
            except (IsADirectoryError, NotADirectoryError) as exc:
                raise ObjectNotFoundError(
                    f"open object {target}: not found", operation="open object", target=target
                ) from exc

    def delete_object(self, bucket: str, key: str) -> None:
        path = self._object_path(bucket, key)
        target = f"{bucket}/{key}"
        with _os_errors("delete object", target):
            if path.is_dir() and not path.is_symlink():
                raise ObjectNotFoundError(
                    f"delete object {target}: not found", operation="delete object", target=target
                )
            try:
                path.unlink()
            except NotADirectoryError as exc:
                raise ObjectNotFoundError(
                    f"delete object {target}: not found", operation="delete object", target=target
                ) from exc
        logger.info("Deleted object {target}", target=target)

    def list_objects(self, bucket: str) -> list[str]:
        bucket_path = self._bucket_path(bucket)
        if not bucket_path.is_dir():
            raise BucketNotFoundError(
                f"list objects {bucket}: bucket not found", operation="list objects", target=bucket
            )
        with _os_errors("list objects", bucket, BucketNotFoundError):
            return list(self.iter_objects(bucket))

    def iter_objects(self, bucket: str) -> Iterator[str]:
        """Depth-first walk yielding every non-directory entry as a key.

        Lazy and single-use; call again to start a fresh walk.
        """
        bucket_path = self._bucket_path(bucket)
        stack = [bucket_path]
        while stack:
            current = stack.pop()
            try:
                entries = os.scandir(current)
            except FileNotFoundError:
                if current == bucket_path:
                    raise
                continue
            with entries:
                for entry in entries:
                    if entry.is_dir(follow_symlinks=False):
                        stack.append(Path(entry.path))
                    else:
                        yield Path(entry.path).relative_to(bucket_path).as_posix()


__all__ = ["DiskBackend", "STAGING_DIR"]
