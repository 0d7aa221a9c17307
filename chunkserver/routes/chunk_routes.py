"""Chunk operation API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from chunkserver.chunk_store import ChunkStore
from chunkserver.encoding import encode_payload
from chunkserver.exceptions import StoreUnavailableError
from chunkserver.schemas import (
    WriteChunkRequest,
    ReadChunkResponse,
    DeleteChunkResponse,
    DeleteAllChunksResponse,
    ChunkExistsResponse,
    StatsResponse,
    StatusResponse,
    HealthResponse
)
from common.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chunk", tags=["Chunks"])

_chunk_store: Optional[ChunkStore] = None


def set_chunk_store(store: Optional[ChunkStore]):
    """Set the global chunk store instance"""
    global _chunk_store
    _chunk_store = store


def peek_chunk_store() -> Optional[ChunkStore]:
    """Return the installed chunk store, or None before startup"""
    return _chunk_store


def get_chunk_store() -> ChunkStore:
    """Dependency to get the chunk store"""
    if _chunk_store is None:
        raise StoreUnavailableError("Chunk store is not initialized")
    return _chunk_store


@router.post("/write", response_model=StatusResponse)
def write_chunk(request: WriteChunkRequest, store: ChunkStore = Depends(get_chunk_store)):
    """
    Store a chunk.

    Body:
        - object_id: Owning object identifier
        - chunk_index: Non-negative chunk position
        - data: Base64 encoded payload

    Raises:
        - 400: Invalid key or malformed base64
        - 500: Storage fault
    """
    store.write_encoded(request.object_id, request.chunk_index, request.data)
    return StatusResponse(status="success", message="Chunk stored")


@router.get("/read", response_model=ReadChunkResponse)
def read_chunk(
    object_id: str = Query(...),
    chunk_index: int = Query(...),
    store: ChunkStore = Depends(get_chunk_store)
):
    """
    Read a chunk, returned base64 encoded.

    Raises:
        - 400: Invalid key
        - 404: Chunk not found
        - 500: Storage fault
    """
    data = store.read(object_id, chunk_index)
    return ReadChunkResponse(
        status="success",
        object_id=object_id,
        chunk_index=chunk_index,
        data=encode_payload(data),
        size=len(data)
    )


@router.delete("/delete", response_model=DeleteChunkResponse)
def delete_chunk(
    object_id: str = Query(...),
    chunk_index: int = Query(...),
    store: ChunkStore = Depends(get_chunk_store)
):
    """
    Delete a chunk. Succeeds whether or not the chunk existed.
    """
    deleted = store.delete(object_id, chunk_index)
    message = "Chunk deleted" if deleted else "Chunk was not present"
    return DeleteChunkResponse(status="success", message=message, deleted=deleted)


@router.delete("/deleteAll", response_model=DeleteAllChunksResponse)
def delete_all_chunks(
    object_id: str = Query(...),
    store: ChunkStore = Depends(get_chunk_store)
):
    """
    Delete every chunk belonging to an object.
    """
    deleted_count = store.delete_all(object_id)
    return DeleteAllChunksResponse(
        status="success",
        message=f"Deleted {deleted_count} chunks",
        deleted_count=deleted_count
    )


@router.get("/exists", response_model=ChunkExistsResponse)
def chunk_exists(
    object_id: str = Query(...),
    chunk_index: int = Query(...),
    store: ChunkStore = Depends(get_chunk_store)
):
    """
    Check whether a chunk is stored on this node.
    """
    return ChunkExistsResponse(
        exists=store.exists(object_id, chunk_index),
        object_id=object_id,
        chunk_index=chunk_index
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(store: ChunkStore = Depends(get_chunk_store)):
    """
    Return chunk count, bytes used and disk capacity for this node.
    """
    return store.stats().to_dict()


@router.get("/health", response_model=HealthResponse)
def health(store: ChunkStore = Depends(get_chunk_store)):
    """
    Health check endpoint. Returns 200 once the store is initialized.
    """
    return HealthResponse(status="UP", service="chunkserver", node_id=store.node_id)
