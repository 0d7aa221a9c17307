"""Shared data type definitions (ChunkKey, BackendCapacity, StoreStats)."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from common.constants import BYTES_PER_MB


@dataclass(frozen=True)
class ChunkKey:
    """
    Composite identifier of a chunk within the store.
    """
    object_id: str
    chunk_index: int

    def __str__(self) -> str:
        return f"{self.object_id}#{self.chunk_index}"


@dataclass(frozen=True)
class BackendCapacity:
    """
    Capacity information exposed by a backend, when it has any.
    """
    free_bytes: int
    total_bytes: int
    can_write: bool


@dataclass(frozen=True)
class StoreStats:
    """
    Aggregate snapshot of the store.

    total_chunks and total_bytes always come from the same enumeration pass.
    """
    node_id: str
    backend: str
    total_chunks: int
    total_bytes: int
    status: str
    storage_path: Optional[str] = None
    capacity: Optional[BackendCapacity] = None

    @property
    def storage_used_mb(self) -> float:
        return self.total_bytes / BYTES_PER_MB

    def to_dict(self) -> Dict[str, Any]:
        """
        Flatten into the stats document served over HTTP.

        Returns:
            Dictionary with counts, usage in MB and capacity fields
        """
        data = asdict(self)
        capacity = data.pop("capacity")
        data["storage_used_mb"] = self.storage_used_mb
        if capacity is not None:
            data["free_space_mb"] = capacity["free_bytes"] // BYTES_PER_MB
            data["total_space_mb"] = capacity["total_bytes"] // BYTES_PER_MB
            data["can_write"] = capacity["can_write"]
        return data
