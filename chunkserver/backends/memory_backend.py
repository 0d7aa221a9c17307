"""In-memory chunk storage: a dict of ChunkKey -> bytes for volatile nodes and tests."""

from typing import Dict, Iterator, List, Optional, Tuple

from chunkserver.backends.base import ChunkBackend
from common.types import ChunkKey


class MemoryChunkBackend(ChunkBackend):
    """
    Volatile storage living for the lifetime of the process.

    There is no lock. Every call is a single dict operation (get, item
    assignment, pop, membership, copy), and each of those is atomic with
    respect to other threads in CPython, so per-key atomicity holds and
    unrelated keys never wait on each other. Bulk iteration works on a
    copy taken in one step. Payloads are stored as immutable bytes and can
    be handed out without copying.
    """

    name = "memory"

    def __init__(self):
        self._chunks: Dict[ChunkKey, bytes] = {}

    def initialize(self) -> None:
        """Nothing to prepare; the map is allocated in the constructor."""

    def get(self, key: ChunkKey) -> Optional[bytes]:
        return self._chunks.get(key)

    def put(self, key: ChunkKey, data: bytes) -> None:
        self._chunks[key] = bytes(data)

    def delete(self, key: ChunkKey) -> bool:
        return self._chunks.pop(key, None) is not None

    def contains(self, key: ChunkKey) -> bool:
        return key in self._chunks

    def list_keys(self) -> List[ChunkKey]:
        return list(self._chunks.copy())

    def scan(self) -> Iterator[Tuple[ChunkKey, int]]:
        for key, payload in self._chunks.copy().items():
            yield key, len(payload)

    def describe(self) -> Dict[str, object]:
        return {"backend": self.name, "chunks": len(self._chunks)}
