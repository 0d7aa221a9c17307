"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class StatusResponse(BaseModel):
    """Response model for operations that only report success."""
    status: str
    message: str


class HealthResponse(BaseModel):
    """Response model for the health check."""
    status: str
    service: str
    node_id: str
