"""Behavioural tests for ChunkStore, run against every backend."""

import base64
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from chunkserver.exceptions import (
    ChunkNotFoundError,
    ChunkValidationError,
    EncodingError,
    ErrorKind
)


class TestSingleChunkOperations:
    """Test write/read/delete/exists on one key."""

    def test_round_trip(self, store):
        payload = bytes(range(256)) * 4
        store.write('img-1', 0, payload)
        assert store.read('img-1', 0) == payload

    def test_round_trip_empty_payload(self, store):
        store.write('img-1', 3, b'')
        assert store.exists('img-1', 3)
        assert store.read('img-1', 3) == b''

    def test_accepts_bytearray_and_memoryview(self, store):
        store.write('img-1', 0, bytearray(b'abc'))
        store.write('img-1', 1, memoryview(b'def'))
        assert store.read('img-1', 0) == b'abc'
        assert store.read('img-1', 1) == b'def'

    def test_overwrite_replaces_payload(self, store):
        store.write('img-1', 0, b'first payload, rather long')
        store.write('img-1', 0, b'second')
        assert store.read('img-1', 0) == b'second'
        assert store.stats().total_chunks == 1

    def test_isolation_between_keys(self, store):
        store.write('A', 1, b'a1')
        store.write('A', 2, b'a2')
        store.write('B', 1, b'b1')

        store.write('A', 1, b'a1-updated')

        assert store.read('A', 2) == b'a2'
        assert store.read('B', 1) == b'b1'

    def test_read_missing_raises_not_found(self, store):
        with pytest.raises(ChunkNotFoundError) as exc_info:
            store.read('img-1', 0)
        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.operation == 'read'

    def test_not_found_semantics(self, store):
        assert store.exists('ghost', 5) is False
        assert store.delete('ghost', 5) is False
        with pytest.raises(ChunkNotFoundError):
            store.read('ghost', 5)

    def test_delete_is_idempotent(self, store):
        store.write('img-1', 0, b'data')

        assert store.delete('img-1', 0) is True
        assert store.exists('img-1', 0) is False
        assert store.delete('img-1', 0) is False
        assert store.exists('img-1', 0) is False

    def test_rejects_non_bytes_payload(self, store):
        with pytest.raises(ChunkValidationError):
            store.write('img-1', 0, 'text is not bytes')
        assert store.exists('img-1', 0) is False

    @pytest.mark.parametrize('object_id, chunk_index', [
        ('', 0),
        ('../escape', 0),
        ('a/b', 0),
        ('img', -1),
    ])
    def test_invalid_keys_rejected_on_every_operation(self, store, object_id, chunk_index):
        with pytest.raises(ChunkValidationError) as exc_info:
            store.write(object_id, chunk_index, b'x')
        assert exc_info.value.operation == 'write'

        with pytest.raises(ChunkValidationError):
            store.read(object_id, chunk_index)
        with pytest.raises(ChunkValidationError):
            store.delete(object_id, chunk_index)
        with pytest.raises(ChunkValidationError):
            store.exists(object_id, chunk_index)

        assert store.stats().total_chunks == 0

    def test_overlong_object_id_is_rejected_before_any_io(self, store):
        object_id = 'x' * 300

        with pytest.raises(ChunkValidationError) as exc_info:
            store.write(object_id, 0, b'data')
        assert exc_info.value.operation == 'write'

        with pytest.raises(ChunkValidationError):
            store.read(object_id, 0)
        with pytest.raises(ChunkValidationError):
            store.exists(object_id, 0)
        with pytest.raises(ChunkValidationError):
            store.delete(object_id, 0)
        with pytest.raises(ChunkValidationError):
            store.delete_all(object_id)

        assert store.stats().total_chunks == 0

    def test_longest_object_id_round_trips(self, store):
        object_id = 'x' * 243

        store.write(object_id, 9, b'edge')

        assert store.read(object_id, 9) == b'edge'
        assert store.delete_all(object_id) == 1


class TestEncodedWrites:
    """Test the base64 write path."""

    def test_write_encoded_round_trip(self, store):
        payload = b'\x00\xffbinary\x10'
        store.write_encoded('img-1', 0, base64.b64encode(payload).decode('ascii'))
        assert store.read('img-1', 0) == payload

    @pytest.mark.parametrize('encoded', ['not base64!!', 'abc', 'YWJj\n===', 'ümlaut'])
    def test_malformed_encoding_leaves_store_unchanged(self, store, encoded):
        store.write('img-1', 0, b'original')

        with pytest.raises(EncodingError) as exc_info:
            store.write_encoded('img-1', 0, encoded)
        with pytest.raises(EncodingError):
            store.write_encoded('img-1', 1, encoded)

        assert exc_info.value.kind is ErrorKind.ENCODING
        assert exc_info.value.key is not None
        assert store.read('img-1', 0) == b'original'
        assert store.exists('img-1', 1) is False

    def test_key_validated_before_decoding(self, store):
        with pytest.raises(ChunkValidationError):
            store.write_encoded('', 0, 'not base64!!')


class TestDeleteAll:
    """Test bulk deletion scope."""

    def test_removes_only_owned_chunks(self, store):
        for index in range(5):
            store.write('A', index, f'a{index}'.encode())
        for index in range(3):
            store.write('B', index, f'b{index}'.encode())

        assert store.delete_all('A') == 5

        for index in range(5):
            assert store.exists('A', index) is False
        for index in range(3):
            assert store.read('B', index) == f'b{index}'.encode()

    def test_does_not_match_by_raw_prefix(self, store):
        store.write('a', 1, b'owned')
        store.write('a_chunk_1', 2, b'lookalike')
        store.write('ab', 0, b'other')

        assert store.delete_all('a') == 1
        assert store.read('a_chunk_1', 2) == b'lookalike'
        assert store.read('ab', 0) == b'other'

    def test_unknown_object_returns_zero(self, store):
        store.write('A', 0, b'x')
        assert store.delete_all('nobody') == 0
        assert store.stats().total_chunks == 1

    def test_continues_after_individual_failure(self, store, monkeypatch):
        for index in range(4):
            store.write('A', index, b'x')

        original_delete = store.backend.delete

        def flaky_delete(key):
            if key.chunk_index == 2:
                raise PermissionError(13, 'Permission denied')
            return original_delete(key)

        monkeypatch.setattr(store.backend, 'delete', flaky_delete)

        assert store.delete_all('A') == 3
        assert store.exists('A', 2) is True
        assert store.exists('A', 0) is False
        assert store.exists('A', 3) is False

    def test_rejects_invalid_object_id(self, store):
        with pytest.raises(ChunkValidationError) as exc_info:
            store.delete_all('../..')
        assert exc_info.value.operation == 'delete_all'


class TestStats:
    """Test aggregate statistics."""

    def test_empty_store(self, store):
        stats = store.stats()
        assert stats.total_chunks == 0
        assert stats.total_bytes == 0
        assert stats.status == 'ok'
        assert stats.node_id == 'test-node'

    def test_counts_and_bytes_agree_with_writes(self, store):
        payloads = [b'', b'a', b'bb' * 10, bytes(1000)]
        for index, payload in enumerate(payloads):
            store.write('obj', index, payload)

        stats = store.stats()
        assert stats.total_chunks == len(payloads)
        assert stats.total_bytes == sum(len(p) for p in payloads)

    def test_reflects_deletes(self, store):
        store.write('A', 0, b'12345')
        store.write('B', 0, b'678')
        store.delete_all('A')

        stats = store.stats()
        assert stats.total_chunks == 1
        assert stats.total_bytes == 3

    def test_to_dict_reports_usage_in_mb(self, store):
        store.write('A', 0, bytes(1024 * 1024))
        document = store.stats().to_dict()
        assert document['total_chunks'] == 1
        assert document['storage_used_mb'] == 1.0
        assert document['backend'] == store.backend.name


class TestConcurrency:
    """Test concurrent callers."""

    def test_concurrent_distinct_key_writes(self, store):
        def write(index):
            store.write(f'obj-{index % 4}', index, f'payload-{index}'.encode() * (index + 1))

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(write, range(64)))

        for index in range(64):
            assert store.read(f'obj-{index % 4}', index) == f'payload-{index}'.encode() * (index + 1)
        assert store.stats().total_chunks == 64

    def test_same_key_writes_are_never_torn(self, store):
        old = b'A' * 65536
        new = b'B' * 65536
        store.write('hot', 0, old)
        stop = threading.Event()
        observed = []

        def writer(payload):
            while not stop.is_set():
                store.write('hot', 0, payload)

        def reader():
            for _ in range(200):
                observed.append(store.read('hot', 0))

        writers = [threading.Thread(target=writer, args=(p,)) for p in (old, new)]
        for thread in writers:
            thread.start()
        try:
            reader()
        finally:
            stop.set()
            for thread in writers:
                thread.join()

        assert all(data in (old, new) for data in observed)

    def test_bulk_delete_during_writes_does_not_touch_other_objects(self, store):
        for index in range(20):
            store.write('keep', index, b'k')

        def churn(index):
            store.write('drop', index, b'd')

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(churn, index) for index in range(50)]
            store.delete_all('drop')
            for future in futures:
                future.result()

        store.delete_all('drop')
        assert store.stats().total_chunks == 20
        assert all(store.exists('keep', index) for index in range(20))
