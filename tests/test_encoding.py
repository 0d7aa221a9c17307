"""Tests for base64 payload encoding."""

import pytest

from chunkserver.encoding import decode_payload, encode_payload
from chunkserver.exceptions import EncodingError


def test_decode_accepts_str_and_bytes():
    assert decode_payload('aGVsbG8=') == b'hello'
    assert decode_payload(b'aGVsbG8=') == b'hello'
    assert decode_payload('') == b''


def test_encode_produces_ascii_text():
    assert encode_payload(b'\xff\x00') == '/wA='


@pytest.mark.parametrize('encoded', ['aGVsbG8', 'aGV sbG8=', '@@@@', None, 12])
def test_decode_rejects_malformed_input(encoded):
    with pytest.raises(EncodingError):
        decode_payload(encoded)
