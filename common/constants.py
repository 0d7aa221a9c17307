"""Project-wide constants (default paths, ports, chunk file naming)."""

DEFAULT_CHUNK_STORAGE_PATH: str = "./storage"
DEFAULT_STORAGE_BACKEND: str = "disk"

CHUNKSERVER_HOST: str = "0.0.0.0"
CHUNKSERVER_PORT: int = 9001
DEFAULT_NODE_ID: str = "chunkserver-1"

CHUNK_NAME_MARKER: str = "_chunk_"
CHUNK_FILE_SUFFIX: str = ".bin"
TEMP_FILE_SUFFIX: str = ".tmp"
MAX_CHUNK_FILENAME_BYTES: int = 255

BYTES_PER_MB: int = 1024 * 1024

DEFAULT_CLIENT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_CLIENT_MAX_RETRIES: int = 3
DEFAULT_CLIENT_RETRY_BACKOFF: float = 2.0
