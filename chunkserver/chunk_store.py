"""ChunkStore: (object_id, chunk_index) -> bytes over a pluggable backend."""

import errno
import logging
from typing import Optional, Union

from chunkserver.backends import ChunkBackend, DiskChunkBackend, MemoryChunkBackend
from chunkserver.chunk_keys import belongs_to, make_chunk_key, validate_object_id
from chunkserver.config import ChunkserverConfig
from chunkserver.encoding import decode_payload
from chunkserver.exceptions import (
    ChunkNotFoundError,
    ChunkValidationError,
    EncodingError,
    StorageEnumerationError,
    StorageInitError,
    StorageReadError,
    StorageWriteError
)
from common.constants import DEFAULT_NODE_ID
from common.types import ChunkKey, StoreStats

logger = logging.getLogger(__name__)

Payload = Union[bytes, bytearray, memoryview]


def _os_reason(error: OSError) -> str:
    """Describe an OSError without the filesystem path it may carry."""
    if error.errno == errno.ENOSPC:
        return "disk full"
    return error.strerror or type(error).__name__


class ChunkStore:
    """
    Storage of binary chunks keyed by (object_id, chunk_index).

    Key validation, error mapping and bulk-scan semantics live here and are
    shared by every backend. There is no store-wide lock: per-key atomicity
    comes from the backend, and bulk operations work on a snapshot of the
    key set while other callers keep writing.
    """

    def __init__(self, backend: ChunkBackend, node_id: str = DEFAULT_NODE_ID):
        """
        Args:
            backend: Storage medium
            node_id: Label used in logs and stats
        """
        self.backend = backend
        self.node_id = node_id
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Prepare the backend and log a startup summary.

        Raises:
            StorageInitError: If the backend cannot be made usable
        """
        logger.info(f"Initializing chunk store [node_id={self.node_id}] [backend={self.backend.name}]")
        try:
            self.backend.initialize()
        except OSError as e:
            logger.error(
                f"Failed to initialize {self.backend.name} backend "
                f"[node_id={self.node_id}] [path={self.backend.storage_path}]: {e}"
            )
            raise StorageInitError(
                f"Cannot initialize {self.backend.name} storage: {_os_reason(e)}",
                operation="initialize",
                cause=e
            ) from e

        self._initialized = True
        for name, value in self.backend.describe().items():
            logger.info(f"  {name}: {value}")
        logger.info(f"Chunk store ready [node_id={self.node_id}]")

    def _key(self, operation: str, object_id: str, chunk_index: int) -> ChunkKey:
        try:
            return make_chunk_key(object_id, chunk_index)
        except ChunkValidationError as e:
            e.operation = operation
            raise

    def write(self, object_id: str, chunk_index: int, data: Payload) -> None:
        """
        Store a chunk, replacing any previous payload for the same key.

        Args:
            object_id: Owning object identifier
            chunk_index: Non-negative position within the object
            data: Raw payload (may be empty)

        Raises:
            ChunkValidationError: If the key or payload type is invalid
            StorageWriteError: If the backend cannot persist the bytes
        """
        key = self._key("write", object_id, chunk_index)
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ChunkValidationError(
                f"Payload must be bytes, got {type(data).__name__}",
                operation="write",
                key=key
            )
        self._put(key, bytes(data))

    def write_encoded(self, object_id: str, chunk_index: int, encoded: Union[str, bytes]) -> None:
        """
        Decode a base64 transport payload and store it.

        Nothing is written when decoding fails.

        Raises:
            ChunkValidationError: If the key is invalid
            EncodingError: If the payload is not valid base64
            StorageWriteError: If the backend cannot persist the bytes
        """
        key = self._key("write", object_id, chunk_index)
        try:
            data = decode_payload(encoded)
        except EncodingError as e:
            e.operation = "write"
            e.key = key
            logger.warning(f"Rejected chunk {key}: {e}")
            raise
        self._put(key, data)

    def _put(self, key: ChunkKey, data: bytes) -> None:
        try:
            self.backend.put(key, data)
        except OSError as e:
            logger.error(f"Failed to write chunk {key} ({len(data)} bytes): {e}")
            raise StorageWriteError(
                f"Failed to write chunk {key}: {_os_reason(e)}",
                operation="write",
                key=key,
                cause=e
            ) from e
        logger.info(f"Chunk stored: {key} ({len(data)} bytes)")

    def read(self, object_id: str, chunk_index: int) -> bytes:
        """
        Read a chunk back verbatim.

        Raises:
            ChunkValidationError: If the key is invalid
            ChunkNotFoundError: If no record exists for the key
            StorageReadError: On a backend fault
        """
        key = self._key("read", object_id, chunk_index)
        try:
            data = self.backend.get(key)
        except OSError as e:
            logger.error(f"Failed to read chunk {key}: {e}")
            raise StorageReadError(
                f"Failed to read chunk {key}: {_os_reason(e)}",
                operation="read",
                key=key,
                cause=e
            ) from e

        if data is None:
            logger.info(f"Chunk not found: {key}")
            raise ChunkNotFoundError(f"Chunk not found: {key}", operation="read", key=key)

        logger.debug(f"Chunk read: {key} ({len(data)} bytes)")
        return data

    def delete(self, object_id: str, chunk_index: int) -> bool:
        """
        Remove a chunk. Deleting an absent key is a successful no-op.

        Returns:
            True if a record was removed, False if it was already absent

        Raises:
            ChunkValidationError: If the key is invalid
            StorageWriteError: On a backend fault during removal
        """
        key = self._key("delete", object_id, chunk_index)
        try:
            removed = self.backend.delete(key)
        except OSError as e:
            logger.error(f"Failed to delete chunk {key}: {e}")
            raise StorageWriteError(
                f"Failed to delete chunk {key}: {_os_reason(e)}",
                operation="delete",
                key=key,
                cause=e
            ) from e

        if removed:
            logger.info(f"Chunk deleted: {key}")
        else:
            logger.info(f"Chunk not found for deletion: {key}")
        return removed

    def delete_all(self, object_id: str) -> int:
        """
        Remove every chunk owned by object_id, whatever its index.

        Works on a snapshot of the key set. A failure on one record is logged
        and the remaining records are still removed.

        Returns:
            Number of records actually removed

        Raises:
            ChunkValidationError: If object_id is invalid
            StorageEnumerationError: If the backend cannot be listed
        """
        try:
            validate_object_id(object_id)
        except ChunkValidationError as e:
            e.operation = "delete_all"
            raise

        try:
            keys = self.backend.list_keys()
        except OSError as e:
            logger.error(f"Failed to list chunks [object_id={object_id}]: {e}")
            raise StorageEnumerationError(
                f"Cannot list chunks for {object_id}: {_os_reason(e)}",
                operation="delete_all",
                cause=e
            ) from e

        deleted_count = 0
        failed_count = 0
        for key in keys:
            if not belongs_to(key, object_id):
                continue
            try:
                if self.backend.delete(key):
                    deleted_count += 1
            except OSError as e:
                failed_count += 1
                logger.error(f"Failed to delete chunk {key} during bulk delete: {e}")

        if failed_count:
            logger.warning(
                f"Bulk delete incomplete [object_id={object_id}] deleted={deleted_count} failed={failed_count}"
            )
        logger.info(f"Deleted {deleted_count} chunks [object_id={object_id}]")
        return deleted_count

    def exists(self, object_id: str, chunk_index: int) -> bool:
        """
        Check whether a chunk is present.

        Raises:
            ChunkValidationError: If the key is invalid
            StorageReadError: If the backend is unavailable (meaning "unknown", not "absent")
        """
        key = self._key("exists", object_id, chunk_index)
        try:
            return self.backend.contains(key)
        except OSError as e:
            logger.error(f"Failed to check chunk {key}: {e}")
            raise StorageReadError(
                f"Cannot determine whether chunk {key} exists: {_os_reason(e)}",
                operation="exists",
                key=key,
                cause=e
            ) from e

    def _empty_stats(self, status: str) -> StoreStats:
        return StoreStats(
            node_id=self.node_id,
            backend=self.backend.name,
            total_chunks=0,
            total_bytes=0,
            status=status,
            storage_path=self.backend.storage_path
        )

    def stats(self) -> StoreStats:
        """
        Aggregate snapshot: chunk count, total bytes and backend capacity.

        Count and byte total come from one enumeration pass. A missing
        storage root yields zero counts with status 'directory_not_found'.

        Raises:
            StorageEnumerationError: If the backend exists but cannot be listed
        """
        if not self.backend.is_available():
            return self._empty_stats("directory_not_found")

        total_chunks = 0
        total_bytes = 0
        try:
            for _, size in self.backend.scan():
                total_chunks += 1
                total_bytes += size
        except FileNotFoundError:
            return self._empty_stats("directory_not_found")
        except OSError as e:
            logger.error(f"Failed to collect stats [node_id={self.node_id}]: {e}")
            raise StorageEnumerationError(
                f"Cannot enumerate chunks: {_os_reason(e)}",
                operation="stats",
                cause=e
            ) from e

        capacity = None
        try:
            capacity = self.backend.capacity()
        except OSError as e:
            logger.warning(f"Capacity information unavailable: {e}")

        return StoreStats(
            node_id=self.node_id,
            backend=self.backend.name,
            total_chunks=total_chunks,
            total_bytes=total_bytes,
            status="ok",
            storage_path=self.backend.storage_path,
            capacity=capacity
        )


def create_backend(config: ChunkserverConfig) -> ChunkBackend:
    """Instantiate the backend named in the configuration."""
    if config.storage_backend == "memory":
        return MemoryChunkBackend()
    return DiskChunkBackend(config.storage_path)


def create_chunk_store(config: ChunkserverConfig, backend: Optional[ChunkBackend] = None) -> ChunkStore:
    """
    Build and initialize a ChunkStore from startup configuration.

    Args:
        config: Node configuration
        backend: Explicit backend overriding config.storage_backend

    Returns:
        Initialized ChunkStore

    Raises:
        StorageInitError: If the backend cannot be prepared
    """
    store = ChunkStore(backend or create_backend(config), node_id=config.node_id)
    store.initialize()
    return store
