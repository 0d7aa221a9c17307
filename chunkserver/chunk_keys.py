"""Chunk key validation and the deterministic chunk <-> filename mapping."""

import re
from pathlib import PurePath
from typing import Optional

from chunkserver.exceptions import ChunkValidationError
from common.constants import CHUNK_NAME_MARKER, CHUNK_FILE_SUFFIX, MAX_CHUNK_FILENAME_BYTES
from common.types import ChunkKey

_FORBIDDEN_CHARS = ("/", "\\", "\x00")
_CANONICAL_INDEX = re.compile(r"^(0|[1-9][0-9]*)$")
_NAME_OVERHEAD_BYTES = len(CHUNK_NAME_MARKER) + len(CHUNK_FILE_SUFFIX)


def validate_object_id(object_id: str) -> str:
    """
    Check that an object id is safe to embed in a chunk filename.

    Only basic traversal rejection is applied; the id is never rewritten.

    Args:
        object_id: Caller supplied object identifier

    Returns:
        The object id unchanged

    Raises:
        ChunkValidationError: If the id is empty, not a string, could escape
            the storage root, or is too long for a chunk filename
    """
    if not isinstance(object_id, str) or not object_id:
        raise ChunkValidationError("object_id must be a non-empty string", operation="validate")

    if any(char in object_id for char in _FORBIDDEN_CHARS):
        raise ChunkValidationError(
            f"object_id contains a path separator or NUL byte: {object_id!r}",
            operation="validate"
        )

    if object_id in (".", ".."):
        raise ChunkValidationError(
            f"object_id is a directory traversal segment: {object_id!r}",
            operation="validate"
        )

    pure = PurePath(object_id)
    if pure.anchor or pure.name != object_id:
        raise ChunkValidationError(
            f"object_id must be a bare name, not a path: {object_id!r}",
            operation="validate"
        )

    # Shortest filename this id can produce is with a one-digit index
    if _encoded_size(object_id) + _NAME_OVERHEAD_BYTES + 1 > MAX_CHUNK_FILENAME_BYTES:
        raise ChunkValidationError(
            f"object_id is too long: chunk filenames are limited to {MAX_CHUNK_FILENAME_BYTES} bytes",
            operation="validate"
        )

    return object_id


def _encoded_size(object_id: str) -> int:
    try:
        return len(object_id.encode("utf-8"))
    except UnicodeEncodeError:
        raise ChunkValidationError(
            f"object_id is not valid UTF-8 text: {object_id!r}",
            operation="validate"
        ) from None


def validate_chunk_index(chunk_index: int) -> int:
    """
    Check that a chunk index is a non-negative integer.

    Raises:
        ChunkValidationError: If the index is not an int (bools rejected) or negative
    """
    if isinstance(chunk_index, bool) or not isinstance(chunk_index, int):
        raise ChunkValidationError(
            f"chunk_index must be an integer, got {type(chunk_index).__name__}",
            operation="validate"
        )
    if chunk_index < 0:
        raise ChunkValidationError(
            f"chunk_index must be non-negative, got {chunk_index}",
            operation="validate"
        )
    return chunk_index


def make_chunk_key(object_id: str, chunk_index: int) -> ChunkKey:
    """
    Validate both components and build the composite key.

    Raises:
        ChunkValidationError: If either component is invalid or the resulting
            filename would exceed MAX_CHUNK_FILENAME_BYTES
    """
    key = ChunkKey(
        object_id=validate_object_id(object_id),
        chunk_index=validate_chunk_index(chunk_index)
    )
    if len(chunk_filename(key).encode("utf-8")) > MAX_CHUNK_FILENAME_BYTES:
        raise ChunkValidationError(
            f"object_id is too long for chunk_index {key.chunk_index}: "
            f"chunk filenames are limited to {MAX_CHUNK_FILENAME_BYTES} bytes",
            operation="validate"
        )
    return key


def chunk_filename(key: ChunkKey) -> str:
    """
    Get the on-disk filename for a chunk.

    Args:
        key: Validated chunk key

    Returns:
        Filename of the form {object_id}_chunk_{chunk_index}.bin
    """
    return f"{key.object_id}{CHUNK_NAME_MARKER}{key.chunk_index}{CHUNK_FILE_SUFFIX}"


def parse_chunk_filename(filename: str) -> Optional[ChunkKey]:
    """
    Recover the chunk key from a filename produced by chunk_filename.

    The split happens on the last marker, so object ids that themselves
    contain "_chunk_" parse back to the right owner.

    Args:
        filename: Bare filename (no directory part)

    Returns:
        ChunkKey, or None if the file is not a chunk file
    """
    if not filename.endswith(CHUNK_FILE_SUFFIX):
        return None

    stem = filename[:-len(CHUNK_FILE_SUFFIX)]
    object_id, marker, index_text = stem.rpartition(CHUNK_NAME_MARKER)
    if not marker or not object_id or not _CANONICAL_INDEX.match(index_text):
        return None

    return ChunkKey(object_id=object_id, chunk_index=int(index_text))


def belongs_to(key: ChunkKey, object_id: str) -> bool:
    """Ownership test used by bulk operations: exact object id match."""
    return key.object_id == object_id
