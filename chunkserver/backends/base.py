"""Abstract chunk backend: the storage medium behind ChunkStore."""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Tuple

from common.types import BackendCapacity, ChunkKey


class ChunkBackend(ABC):
    """
    Storage medium holding chunk bytes keyed by ChunkKey.

    Implementations raise plain OSError on I/O faults; ChunkStore maps them
    to its error taxonomy. Keys passed in are already validated.
    """

    name: str = "abstract"

    @property
    def storage_path(self) -> Optional[str]:
        """Location of the medium on disk, if it has one."""
        return None

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the medium. Raise OSError if it cannot be made usable."""

    @abstractmethod
    def get(self, key: ChunkKey) -> Optional[bytes]:
        """Return the payload for key, or None if absent."""

    @abstractmethod
    def put(self, key: ChunkKey, data: bytes) -> None:
        """Store data under key, replacing any previous payload atomically."""

    @abstractmethod
    def delete(self, key: ChunkKey) -> bool:
        """Remove key. Return True if it was present, False otherwise."""

    @abstractmethod
    def contains(self, key: ChunkKey) -> bool:
        """Return whether key is present."""

    @abstractmethod
    def list_keys(self) -> List[ChunkKey]:
        """Snapshot of the current key set."""

    @abstractmethod
    def scan(self) -> Iterator[Tuple[ChunkKey, int]]:
        """
        Yield (key, size) for every record in a single pass.

        Records that disappear mid-scan are skipped, never half-counted.
        """

    def capacity(self) -> Optional[BackendCapacity]:
        """Free/total space of the medium, if it exposes one."""
        return None

    def is_available(self) -> bool:
        """Whether the medium can currently be enumerated."""
        return True

    def describe(self) -> Dict[str, object]:
        """Diagnostic summary logged at startup."""
        return {"backend": self.name}
