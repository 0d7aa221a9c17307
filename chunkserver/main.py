"""Entry point for the Chunkserver service.
Initializes the chunk store and serves the chunk HTTP API.
"""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from chunkserver.config import load_config
from chunkserver.chunk_store import create_chunk_store
from chunkserver.exceptions import (
    ChunkStoreError,
    ChunkNotFoundError,
    ChunkValidationError,
    EncodingError,
    StoreUnavailableError
)
from chunkserver.routes import chunk_router
from chunkserver.routes.chunk_routes import set_chunk_store, peek_chunk_store

logger = setup_logging('chunkserver')

app = FastAPI(
    title="Chunkserver",
    description="Chunk storage node: stores, serves and deletes object chunks",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
def startup_event():
    """
    Initialize the chunk store from the environment unless one was already installed.
    A StorageInitError here aborts startup.
    """
    if peek_chunk_store() is not None:
        logger.info("Chunk store already installed, skipping initialization")
        return

    config = load_config()
    setup_logging('chunkserver', config.log_level)
    logger.info(f"Chunkserver starting up [node_id={config.node_id}] [port={config.port}]")
    set_chunk_store(create_chunk_store(config))


@app.exception_handler(ChunkNotFoundError)
async def chunk_not_found_handler(request: Request, exc: ChunkNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Chunk not found: {exc.key} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": exc.code}
    )


@app.exception_handler(ChunkValidationError)
async def chunk_validation_handler(request: Request, exc: ChunkValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Invalid chunk key: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": exc.code}
    )


@app.exception_handler(EncodingError)
async def encoding_error_handler(request: Request, exc: EncodingError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Invalid payload encoding: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": exc.code}
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Request before store initialization [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": exc.code}
    )


@app.exception_handler(ChunkStoreError)
async def chunk_store_error_handler(request: Request, exc: ChunkStoreError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage error during {exc.operation}: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": exc.code}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Malformed request [request_id={request_id}] path={request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request parameters", "code": "INVALID_REQUEST"}
    )


app.include_router(chunk_router)


@app.get("/")
async def root():
    """
    Root endpoint for liveness probes.
    """
    return {"message": "Chunkserver API", "status": "running"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    config = load_config()
    uvicorn.run(
        "chunkserver.main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    main()
