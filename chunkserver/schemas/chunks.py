"""Pydantic schemas for chunk operation endpoints."""

from typing import Optional
from pydantic import BaseModel


class WriteChunkRequest(BaseModel):
    """Request model for storing a chunk. data is base64 encoded."""
    object_id: str
    chunk_index: int
    data: str


class ReadChunkResponse(BaseModel):
    """Response model for chunk reads."""
    status: str
    object_id: str
    chunk_index: int
    data: str
    size: int


class DeleteChunkResponse(BaseModel):
    """Response model for single chunk deletion."""
    status: str
    message: str
    deleted: bool


class DeleteAllChunksResponse(BaseModel):
    """Response model for bulk deletion of an object's chunks."""
    status: str
    message: str
    deleted_count: int


class ChunkExistsResponse(BaseModel):
    """Response model for existence checks."""
    exists: bool
    object_id: str
    chunk_index: int


class StatsResponse(BaseModel):
    """Response model for node statistics."""
    node_id: str
    backend: str
    status: str
    total_chunks: int
    total_bytes: int
    storage_used_mb: float
    storage_path: Optional[str] = None
    free_space_mb: Optional[int] = None
    total_space_mb: Optional[int] = None
    can_write: Optional[bool] = None
