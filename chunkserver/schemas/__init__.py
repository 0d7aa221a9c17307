"""Pydantic schemas for API requests and responses."""

from chunkserver.schemas.chunks import (
    WriteChunkRequest,
    ReadChunkResponse,
    DeleteChunkResponse,
    DeleteAllChunksResponse,
    ChunkExistsResponse,
    StatsResponse
)
from chunkserver.schemas.common import ErrorResponse, StatusResponse, HealthResponse

__all__ = [
    "WriteChunkRequest",
    "ReadChunkResponse",
    "DeleteChunkResponse",
    "DeleteAllChunksResponse",
    "ChunkExistsResponse",
    "StatsResponse",
    "ErrorResponse",
    "StatusResponse",
    "HealthResponse"
]
