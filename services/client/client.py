"""HTTP client for the SOS API."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

import httpx

from core.exceptions import ClientError

UPLOAD_CHUNK_SIZE = 64 * 1024


def _read_chunks(data: BinaryIO) -> Iterator[bytes]:
    while True:
        chunk = data.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


class SosClient:
    """Thin wrapper mapping each storage operation onto one HTTP call.

    Pass ``http_client`` to reuse a configured ``httpx.Client`` (its
    ``base_url`` is then used and ``endpoint`` ignored).
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:8080",
        *,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=self.endpoint, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "SosClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _bucket_url(bucket: str) -> str:
        return f"/buckets/{quote(bucket, safe='')}"

    @classmethod
    def _object_url(cls, bucket: str, key: str) -> str:
        return f"{cls._bucket_url(bucket)}/object/{quote(key, safe='/')}"

    @staticmethod
    def _check(response: httpx.Response, action: str) -> httpx.Response:
        if response.status_code >= 300:
            body = response.text.strip()
            raise ClientError(f"{action} failed: {response.status_code} {body}".rstrip(), response.status_code, body)
        return response

    # buckets

    def create_bucket(self, name: str) -> None:
        self._check(self._http.put(self._bucket_url(name)), f"create bucket {name}")

    def delete_bucket(self, name: str) -> None:
        self._check(self._http.delete(self._bucket_url(name)), f"delete bucket {name}")

    def list_buckets(self) -> list[str]:
        response = self._check(self._http.get("/buckets"), "list buckets")
        return list(response.json())

    # objects

    def put_object(self, bucket: str, key: str, data: bytes | BinaryIO) -> None:
        content = data if isinstance(data, bytes) else _read_chunks(data)
        response = self._http.put(self._object_url(bucket, key), content=content)
        self._check(response, f"put object {bucket}/{key}")

    def get_object(self, bucket: str, key: str) -> bytes:
        response = self._check(self._http.get(self._object_url(bucket, key)), f"get object {bucket}/{key}")
        return response.content

    def download_object(self, bucket: str, key: str, destination: Path) -> int:
        """Stream an object into ``destination``; returns bytes written.

        The file is only created once the server has answered 200.
        """
        written = 0
        with self._http.stream("GET", self._object_url(bucket, key)) as response:
            if response.status_code >= 300:
                response.read()
            self._check(response, f"get object {bucket}/{key}")
            with destination.open("wb") as out:
                for chunk in response.iter_bytes():
                    out.write(chunk)
                    written += len(chunk)
        return written

    def delete_object(self, bucket: str, key: str) -> None:
        self._check(self._http.delete(self._object_url(bucket, key)), f"delete object {bucket}/{key}")

    def list_objects(self, bucket: str) -> list[str]:
        response = self._check(self._http.get(f"{self._bucket_url(bucket)}/objects"), f"list objects {bucket}")
        return list(response.json())


__all__ = ["SosClient"]
