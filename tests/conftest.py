"""Shared pytest fixtures for all tests."""

import pytest

from chunkserver.backends import DiskChunkBackend, MemoryChunkBackend
from chunkserver.chunk_store import ChunkStore


@pytest.fixture
def storage_dir(tmp_path):
    """
    Storage root that does not exist yet.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to a not-yet-created storage directory
    """
    return tmp_path / 'storage'


@pytest.fixture
def disk_store(storage_dir):
    """
    Initialized ChunkStore over a temporary directory.
    """
    store = ChunkStore(DiskChunkBackend(storage_dir), node_id='test-node')
    store.initialize()
    return store


@pytest.fixture
def memory_store():
    """
    Initialized ChunkStore over an in-memory map.
    """
    store = ChunkStore(MemoryChunkBackend(), node_id='test-node')
    store.initialize()
    return store


@pytest.fixture(params=['disk', 'memory'])
def store(request):
    """
    ChunkStore run once per backend, for behaviour both must share.
    """
    return request.getfixturevalue(f'{request.param}_store')
