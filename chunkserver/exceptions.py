"""Custom exception classes for the chunk store."""

from enum import Enum
from typing import Optional

from common.types import ChunkKey


class ErrorKind(str, Enum):
    """
    Tag carried by every store error, used by callers to branch on the failure kind.
    """
    VALIDATION = "INVALID_CHUNK_KEY"
    ENCODING = "INVALID_ENCODING"
    NOT_FOUND = "CHUNK_NOT_FOUND"
    INIT = "STORAGE_INIT_FAILED"
    READ = "STORAGE_READ_FAILED"
    WRITE = "STORAGE_WRITE_FAILED"
    ENUMERATION = "STORAGE_ENUMERATION_FAILED"
    UNAVAILABLE = "STORE_NOT_INITIALIZED"
    INTERNAL = "INTERNAL_ERROR"


class ChunkStoreError(Exception):
    """
    Base exception class for all chunk store errors.

    Args:
        message: Human readable description
        operation: Store operation that failed (write, read, ...)
        key: Chunk key involved, if any
        cause: Underlying exception, if any
    """
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        key: Optional[ChunkKey] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.operation = operation
        self.key = key
        self.cause = cause

    @property
    def code(self) -> str:
        return self.kind.value


class ChunkValidationError(ChunkStoreError, ValueError):
    """
    Raised when an object id or chunk index is malformed.
    """
    kind = ErrorKind.VALIDATION


class EncodingError(ChunkStoreError, ValueError):
    """
    Raised when a payload cannot be decoded from its transport encoding.
    """
    kind = ErrorKind.ENCODING


class ChunkNotFoundError(ChunkStoreError, LookupError):
    """
    Raised when no record exists for the requested key.
    """
    kind = ErrorKind.NOT_FOUND


class StorageInitError(ChunkStoreError):
    """
    Raised when the backend cannot be prepared at startup.
    """
    kind = ErrorKind.INIT


class StorageReadError(ChunkStoreError):
    """
    Raised on a backend fault while reading or probing a chunk.
    """
    kind = ErrorKind.READ


class StorageWriteError(ChunkStoreError):
    """
    Raised on a backend fault while persisting or removing a chunk.
    """
    kind = ErrorKind.WRITE


class StorageEnumerationError(ChunkStoreError):
    """
    Raised when the backend key set cannot be listed at all.
    """
    kind = ErrorKind.ENUMERATION


class StoreUnavailableError(ChunkStoreError):
    """
    Raised when a request arrives before the chunk store is installed.
    """
    kind = ErrorKind.UNAVAILABLE


ERRORS_BY_CODE = {
    cls.kind.value: cls
    for cls in (
        ChunkValidationError,
        EncodingError,
        ChunkNotFoundError,
        StorageInitError,
        StorageReadError,
        StorageWriteError,
        StorageEnumerationError,
        StoreUnavailableError,
    )
}
