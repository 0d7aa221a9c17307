"""Base64 transport encoding for chunk payloads."""

import base64
import binascii
from typing import Union

from chunkserver.exceptions import EncodingError


def decode_payload(encoded: Union[str, bytes]) -> bytes:
    """
    Decode a base64 payload received over the wire.

    Decoding is strict: characters outside the base64 alphabet and bad
    padding are rejected rather than skipped.

    Args:
        encoded: Base64 text

    Returns:
        Raw payload bytes (possibly empty)

    Raises:
        EncodingError: If the payload is not valid base64
    """
    if not isinstance(encoded, (str, bytes)):
        raise EncodingError(
            f"Payload must be base64 text, got {type(encoded).__name__}",
            operation="decode"
        )
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Payload is not valid base64: {e}", operation="decode", cause=e) from e


def encode_payload(data: bytes) -> str:
    """Encode raw payload bytes as base64 text for transmission."""
    return base64.b64encode(data).decode('ascii')
