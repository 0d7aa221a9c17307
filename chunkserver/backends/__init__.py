"""Chunk storage backends."""

from chunkserver.backends.base import ChunkBackend
from chunkserver.backends.disk_backend import DiskChunkBackend
from chunkserver.backends.memory_backend import MemoryChunkBackend

__all__ = ["ChunkBackend", "DiskChunkBackend", "MemoryChunkBackend"]
