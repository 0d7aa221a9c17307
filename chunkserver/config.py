"""Configuration settings for the chunkserver node."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from common.constants import (
    CHUNKSERVER_HOST,
    CHUNKSERVER_PORT,
    DEFAULT_CHUNK_STORAGE_PATH,
    DEFAULT_NODE_ID,
    DEFAULT_STORAGE_BACKEND
)

STORAGE_BACKENDS = ("disk", "memory")


@dataclass(frozen=True)
class ChunkserverConfig:
    """
    Startup settings handed to the chunk store and HTTP server.

    node_id is a diagnostic label only; it is never validated beyond being a string.
    """
    storage_path: str = DEFAULT_CHUNK_STORAGE_PATH
    storage_backend: str = DEFAULT_STORAGE_BACKEND
    host: str = CHUNKSERVER_HOST
    port: int = CHUNKSERVER_PORT
    node_id: str = DEFAULT_NODE_ID
    log_level: str = "INFO"

    def __post_init__(self):
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.storage_backend!r}, expected one of {STORAGE_BACKENDS}"
            )
        if not 0 < self.port < 65536:
            raise ValueError(f"Port out of range: {self.port}")


def load_config(environ: Optional[Mapping[str, str]] = None) -> ChunkserverConfig:
    """
    Build the node configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        ChunkserverConfig instance

    Raises:
        ValueError: If a variable holds an invalid value
    """
    if environ is None:
        environ = os.environ

    port_text = environ.get("CHUNKSERVER_PORT", str(CHUNKSERVER_PORT))
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"CHUNKSERVER_PORT must be an integer, got {port_text!r}")

    return ChunkserverConfig(
        storage_path=environ.get("CHUNK_STORAGE_PATH", DEFAULT_CHUNK_STORAGE_PATH),
        storage_backend=environ.get("CHUNK_STORAGE_BACKEND", DEFAULT_STORAGE_BACKEND).lower(),
        host=environ.get("CHUNKSERVER_HOST", CHUNKSERVER_HOST),
        port=port,
        node_id=environ.get("CHUNKSERVER_NODE_ID", DEFAULT_NODE_ID),
        log_level=environ.get("LOG_LEVEL", "INFO").upper()
    )
