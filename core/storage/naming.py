"""Bucket name and object key validation.

Bucket names and keys are joined directly into filesystem paths by the disk
backend, so anything that could leave the root (or the bucket) is rejected
here instead of being rewritten.
"""

from __future__ import annotations

from core.exceptions import InvalidNameError

MAX_SEGMENT_LENGTH = 255
MAX_KEY_LENGTH = 1024

_FORBIDDEN_CHARS = ("\x00", "\\")


def _check_chars(value: str, what: str) -> None:
    for char in _FORBIDDEN_CHARS:
        if char in value:
            raise InvalidNameError(f"{what} contains a forbidden character: {value!r}", {"name": value})


def validate_bucket_name(name: str) -> str:
    """Return ``name`` unchanged if it is usable as a single directory name.

    Rules: non-empty, no ``/``, no leading ``.`` (covers ``.``, ``..`` and the
    backend's own hidden directories), no NUL or backslash, at most 255 chars.
    """
    if not name:
        raise InvalidNameError("bucket name cannot be empty")
    _check_chars(name, "bucket name")
    if "/" in name:
        raise InvalidNameError(f"bucket name cannot contain '/': {name!r}", {"name": name})
    if name.startswith("."):
        raise InvalidNameError(f"bucket name cannot start with '.': {name!r}", {"name": name})
    if len(name) > MAX_SEGMENT_LENGTH:
        raise InvalidNameError(
            f"bucket name exceeds {MAX_SEGMENT_LENGTH} characters", {"name": name[:64]}
        )
    return name


def split_key(key: str) -> tuple[str, ...]:
    """Validate an object key and return its ``/``-separated segments.

    Absolute keys, empty segments (``a//b``, trailing ``/``) and ``.``/``..``
    segments are rejected, so two distinct valid keys never map to the same
    file and no valid key points outside its bucket.
    """
    if not key:
        raise InvalidNameError("object key cannot be empty")
    _check_chars(key, "object key")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidNameError(f"object key exceeds {MAX_KEY_LENGTH} characters", {"key": key[:64]})
    if key.startswith("/"):
        raise InvalidNameError(f"object key cannot be absolute: {key!r}", {"key": key})

    segments = tuple(key.split("/"))
    for segment in segments:
        if not segment:
            raise InvalidNameError(f"object key has an empty path segment: {key!r}", {"key": key})
        if segment in {".", ".."}:
            raise InvalidNameError(f"object key cannot contain '{segment}' segments: {key!r}", {"key": key})
        if len(segment) > MAX_SEGMENT_LENGTH:
            raise InvalidNameError(
                f"object key segment exceeds {MAX_SEGMENT_LENGTH} characters", {"key": key[:64]}
            )
    return segments


def validate_key(key: str) -> str:
    split_key(key)
    return key


__all__ = ["MAX_KEY_LENGTH", "MAX_SEGMENT_LENGTH", "split_key", "validate_bucket_name", "validate_key"]
