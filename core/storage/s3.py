from __future__ import annotations

from typing import Any, BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from core.exceptions import BucketNotFoundError, ObjectNotFoundError, StorageIOError
from core.storage.naming import validate_bucket_name, validate_key

_MISSING_BUCKET_CODES = {"NoSuchBucket"}
_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}
_DELETE_BATCH = 1000


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3Backend:
    """Buckets map one-to-one onto S3 (or MinIO) buckets."""

    def __init__(
        self,
        *,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.region = region
        if client is None:
            session = boto3.session.Session(region_name=region) if region else boto3.session.Session()
            client = session.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
        self.client = client

    def _io_error(self, operation: str, target: str, exc: Exception) -> StorageIOError:
        return StorageIOError(f"{operation} {target}: {exc}", operation=operation, target=target, original_error=exc)

    # bucket operations

    def create_bucket(self, name: str) -> None:
        validate_bucket_name(name)
        params: dict[str, Any] = {"Bucket": name}
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.client.create_bucket(**params)
        except ClientError as exc:
            if _error_code(exc) == "BucketAlreadyOwnedByYou":
                return
            raise self._io_error("create bucket", name, exc) from exc
        except BotoCoreError as exc:
            raise self._io_error("create bucket", name, exc) from exc
        logger.info("Created S3 bucket {bucket}", bucket=name)

    def delete_bucket(self, name: str) -> None:
        validate_bucket_name(name)
        try:
            keys = self._iter_keys(name)
            batch: list[dict[str, str]] = []
            for key in keys:
                batch.append({"Key": key})
                if len(batch) == _DELETE_BATCH:
                    self.client.delete_objects(Bucket=name, Delete={"Objects": batch, "Quiet": True})
                    batch = []
            if batch:
                self.client.delete_objects(Bucket=name, Delete={"Objects": batch, "Quiet": True})
            self.client.delete_bucket(Bucket=name)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_BUCKET_CODES:
                return
            raise self._io_error("delete bucket", name, exc) from exc
        except BotoCoreError as exc:
            raise self._io_error("delete bucket", name, exc) from exc
        logger.info("Deleted S3 bucket {bucket}", bucket=name)

    def list_buckets(self) -> list[str]:
        try:
            response = self.client.list_buckets()
        except (ClientError, BotoCoreError) as exc:
            raise self._io_error("list buckets", "s3", exc) from exc
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    # object operations

    def put_object(self, bucket: str, key: str, data: BinaryIO) -> None:
        validate_key(key)
        self.create_bucket(bucket)
        target = f"{bucket}/{key}"
        try:
            self.client.upload_fileobj(data, bucket, key)
        except (ClientError, BotoCoreError) as exc:
            raise self._io_error("write object", target, exc) from exc
        logger.info("Stored object {target}", target=target)

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        validate_bucket_name(bucket)
        validate_key(key)
        target = f"{bucket}/{key}"
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_KEY_CODES | _MISSING_BUCKET_CODES:
                raise ObjectNotFoundError(
                    f"open object {target}: not found", operation="open object", target=target
                ) from exc
            raise self._io_error("open object", target, exc) from exc
        except BotoCoreError as exc:
            raise self._io_error("open object", target, exc) from exc
        return response["Body"]

    def delete_object(self, bucket: str, key: str) -> None:
        validate_bucket_name(bucket)
        validate_key(key)
        target = f"{bucket}/{key}"
        try:
            # S3 deletes are silent for missing keys
            self.client.head_object(Bucket=bucket, Key=key)
            self.client.delete_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_KEY_CODES | _MISSING_BUCKET_CODES:
                raise ObjectNotFoundError(
                    f"delete object {target}: not found", operation="delete object", target=target
                ) from exc
            raise self._io_error("delete object", target, exc) from exc
        except BotoCoreError as exc:
            raise self._io_error("delete object", target, exc) from exc
        logger.info("Deleted object {target}", target=target)

    def list_objects(self, bucket: str) -> list[str]:
        validate_bucket_name(bucket)
        try:
            return list(self._iter_keys(bucket))
        except ClientError as exc:
            if _error_code(exc) in _MISSING_BUCKET_CODES:
                raise BucketNotFoundError(
                    f"list objects {bucket}: bucket not found", operation="list objects", target=bucket
                ) from exc
            raise self._io_error("list objects", bucket, exc) from exc
        except BotoCoreError as exc:
            raise self._io_error("list objects", bucket, exc) from exc

    def _iter_keys(self, bucket: str):
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            for item in page.get("Contents", []):
                yield item["Key"]


__all__ = ["S3Backend"]
