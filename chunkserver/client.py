"""HTTP client for communicating with a Chunkserver node."""

import time
import uuid
from typing import Any, Dict, Optional

import httpx

from chunkserver.encoding import decode_payload, encode_payload
from chunkserver.exceptions import (
    ERRORS_BY_CODE,
    ChunkNotFoundError,
    ChunkStoreError,
    ChunkValidationError
)
from common.constants import (
    DEFAULT_CLIENT_MAX_RETRIES,
    DEFAULT_CLIENT_RETRY_BACKOFF,
    DEFAULT_CLIENT_TIMEOUT_SECONDS
)
from common.logging_config import get_logger

logger = get_logger(__name__)


class ChunkserverClient:
    """HTTP client for the chunk API with retry logic and error mapping."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_CLIENT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_CLIENT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_CLIENT_RETRY_BACKOFF
    ):
        """
        Initialize chunkserver client.

        Args:
            base_url: Node address, e.g. http://localhost:9001
            timeout: Per-request timeout in seconds
            max_retries: Retries on 5xx responses and network failures
            retry_backoff: Base of the exponential backoff between retries
        """
        self.base_url = base_url
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.session = httpx.Client(base_url=base_url, timeout=timeout)
        self.request_id = None
        logger.info(f"Initialized ChunkserverClient [base_url={base_url}]")

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        replay_safe: bool = True,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE)
            endpoint: API endpoint path
            replay_safe: If False, only connection failures are retried, since
                a 5xx or a timeout may follow a request the server already applied
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if response.status_code >= 500 and replay_safe and attempt < self.max_retries:
                    delay = self.retry_backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                retryable = replay_safe or not isinstance(e, httpx.TimeoutException)
                if retryable and attempt < self.max_retries:
                    delay = self.retry_backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (giving up): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )
                break

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Chunkserver may be overloaded.")
        raise ConnectionError(f"Cannot connect to chunkserver at {self.base_url}. Is it running?")

    def _raise_for_error(self, response: httpx.Response, operation: str) -> None:
        """
        Translate an error response back into the store exception it came from.
        """
        if response.status_code < 400:
            return

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        detail = body.get('detail') or response.text or f"HTTP {response.status_code}"
        error_cls = ERRORS_BY_CODE.get(body.get('code'))

        if error_cls is None:
            if response.status_code == 404:
                error_cls = ChunkNotFoundError
            elif response.status_code == 400:
                error_cls = ChunkValidationError
            else:
                error_cls = ChunkStoreError

        raise error_cls(str(detail), operation=operation)

    def write_chunk(self, object_id: str, chunk_index: int, data: bytes) -> None:
        """Store a chunk on the node."""
        response = self._request_with_retry(
            'POST',
            '/api/chunk/write',
            json={'object_id': object_id, 'chunk_index': chunk_index, 'data': encode_payload(data)}
        )
        self._raise_for_error(response, 'write')

    def read_chunk(self, object_id: str, chunk_index: int) -> bytes:
        """
        Fetch a chunk from the node.

        Raises:
            ChunkNotFoundError: If the node does not hold the chunk
        """
        response = self._request_with_retry(
            'GET',
            '/api/chunk/read',
            params={'object_id': object_id, 'chunk_index': chunk_index}
        )
        self._raise_for_error(response, 'read')
        return decode_payload(response.json()['data'])

    def delete_chunk(self, object_id: str, chunk_index: int) -> bool:
        """Delete a chunk. Returns whether the node actually held it."""
        response = self._request_with_retry(
            'DELETE',
            '/api/chunk/delete',
            params={'object_id': object_id, 'chunk_index': chunk_index}
        )
        self._raise_for_error(response, 'delete')
        return response.json()['deleted']

    def delete_all_chunks(self, object_id: str) -> int:
        """
        Delete every chunk of an object. Returns the number removed.

        Only refused connections are retried. A replay after a timeout or 5xx
        would report 0 for chunks the first attempt already removed.
        """
        response = self._request_with_retry(
            'DELETE',
            '/api/chunk/deleteAll',
            replay_safe=False,
            params={'object_id': object_id}
        )
        self._raise_for_error(response, 'delete_all')
        return response.json()['deleted_count']

    def chunk_exists(self, object_id: str, chunk_index: int) -> bool:
        response = self._request_with_retry(
            'GET',
            '/api/chunk/exists',
            params={'object_id': object_id, 'chunk_index': chunk_index}
        )
        self._raise_for_error(response, 'exists')
        return response.json()['exists']

    def get_stats(self) -> Dict[str, Any]:
        response = self._request_with_retry('GET', '/api/chunk/stats')
        self._raise_for_error(response, 'stats')
        return response.json()

    def health(self) -> Optional[Dict[str, Any]]:
        """Return the health document, or None if the node is not ready."""
        try:
            response = self._request_with_retry('GET', '/api/chunk/health')
        except ConnectionError as e:
            logger.warning(f"Health check failed [base_url={self.base_url}]: {e}")
            return None
        if response.status_code != 200:
            return None
        return response.json()
