from __future__ import annotations

from collections.abc import Iterator
from tempfile import SpooledTemporaryFile
from typing import Annotated, BinaryIO

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from core.exceptions import StorageError
from core.storage import StorageBackend
from core.storage.naming import validate_bucket_name, validate_key


router = APIRouter(prefix="/buckets", tags=["buckets"])


UPLOAD_SPOOL_MAX_BYTES = 8 * 1024 * 1024
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def get_backend(request: Request) -> StorageBackend:
    return request.app.state.backend


Backend = Annotated[StorageBackend, Depends(get_backend)]


def _failure(exc: StorageError, status_code: int) -> PlainTextResponse:
    logger.warning(
        "Storage operation failed ({status}): {message}",
        status=status_code,
        message=exc.message,
        details=exc.details,
    )
    return PlainTextResponse(exc.message, status_code=status_code)


def _iter_chunks(handle: BinaryIO) -> Iterator[bytes]:
    # the handle is closed even if the client goes away mid-download
    try:
        while True:
            chunk = handle.read(DOWNLOAD_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        handle.close()


# bucket operations


@router.get("")
def list_buckets(backend: Backend) -> Response:
    try:
        buckets = backend.list_buckets()
    except StorageError as exc:
        return _failure(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(buckets)


@router.put("/{bucket}")
def create_bucket(bucket: str, backend: Backend) -> Response:
    try:
        backend.create_bucket(bucket)
    except StorageError as exc:
        return _failure(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response()


@router.delete("/{bucket}")
def delete_bucket(bucket: str, backend: Backend) -> Response:
    try:
        backend.delete_bucket(bucket)
    except StorageError as exc:
        return _failure(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response()


@router.get("/{bucket}/objects")
def list_objects(bucket: str, backend: Backend) -> Response:
    try:
        objects = backend.list_objects(bucket)
    except StorageError as exc:
        return _failure(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(objects)


# object operations


@router.put("/{bucket}/object/{key:path}")
async def put_object(bucket: str, key: str, request: Request, backend: Backend) -> Response:
    """Upload the request body as ``bucket/key``.

    The body is spooled (memory, then disk past UPLOAD_SPOOL_MAX_BYTES) before
    the backend sees it, so a client that disconnects mid-upload never leaves
    a partial object behind. Names are checked before any of the body is read.
    """
    validate_bucket_name(bucket)
    validate_key(key)
    with SpooledTemporaryFile(max_size=UPLOAD_SPOOL_MAX_BYTES) as spool:
        try:
            async for chunk in request.stream():
                await run_in_threadpool(spool.write, chunk)
        except ClientDisconnect:
            logger.info("Client disconnected during upload of {bucket}/{key}", bucket=bucket, key=key)
            return Response(status_code=status.HTTP_400_BAD_REQUEST)
        spool.seek(0)
        try:
            await run_in_threadpool(backend.put_object, bucket, key, spool)
        except StorageError as exc:
            return _failure(exc, status.HTTP_404_NOT_FOUND)
    return Response()


@router.get("/{bucket}/object/{key:path}")
def get_object(bucket: str, key: str, backend: Backend) -> Response:
    try:
        handle = backend.get_object(bucket, key)
    except StorageError as exc:
        return _failure(exc, status.HTTP_404_NOT_FOUND)
    return StreamingResponse(_iter_chunks(handle), media_type="application/octet-stream")


@router.delete("/{bucket}/object/{key:path}")
def delete_object(bucket: str, key: str, backend: Backend) -> Response:
    try:
        backend.delete_object(bucket, key)
    except StorageError as exc:
        return _failure(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response()


__all__ = ["router", "get_backend"]
