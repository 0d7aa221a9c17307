"""Manages physical chunk files on disk: one raw file per chunk, atomic replace on write."""

import errno
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from chunkserver.backends.base import ChunkBackend
from chunkserver.chunk_keys import chunk_filename, parse_chunk_filename
from common.constants import BYTES_PER_MB, TEMP_FILE_SUFFIX
from common.types import BackendCapacity, ChunkKey


def resolve_storage_path(storage_path: Union[str, Path]) -> Path:
    """
    Resolve a configured storage location to an absolute, normalized path.

    Symlinks are left in place; only '.', '..' and relative prefixes are folded.
    """
    return Path(os.path.normpath(os.path.abspath(os.path.expanduser(str(storage_path)))))


class DiskChunkBackend(ChunkBackend):
    """
    Directory-backed storage. Each chunk lives in {root}/{object_id}_chunk_{index}.bin
    with no header or framing.
    """

    name = "disk"

    def __init__(self, storage_path: Union[str, Path]):
        """
        Args:
            storage_path: Configured storage root, relative or absolute
        """
        self.configured_path = str(storage_path)
        self.root = resolve_storage_path(storage_path)

    @property
    def storage_path(self) -> str:
        return str(self.root)

    def initialize(self) -> None:
        """
        Create the storage root if needed and check it is writable.

        Raises:
            OSError: If the directory cannot be created or is not writable
        """
        self.root.mkdir(parents=True, exist_ok=True)
        if not self.root.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, "Storage root is not a directory")
        if not os.access(self.root, os.W_OK):
            raise PermissionError(errno.EACCES, "Storage root is not writable")

    def get_chunk_path(self, key: ChunkKey) -> Path:
        """
        Get file path for a chunk.

        Args:
            key: Validated chunk key

        Returns:
            Path object for chunk file
        """
        return self.root / chunk_filename(key)

    def _root_missing(self) -> FileNotFoundError:
        return FileNotFoundError(errno.ENOENT, "Storage root is missing")

    def get(self, key: ChunkKey) -> Optional[bytes]:
        """
        Read entire chunk from disk.

        Returns:
            Raw chunk data, or None if the chunk does not exist

        Raises:
            OSError: If the read fails or the storage root itself is gone
        """
        try:
            return self.get_chunk_path(key).read_bytes()
        except FileNotFoundError:
            if not self.root.is_dir():
                raise self._root_missing()
            return None

    def put(self, key: ChunkKey, data: bytes) -> None:
        """
        Write chunk data to disk.

        The bytes go to a temporary file in the same directory which then
        replaces the target, so readers see either the old or the new file.

        Raises:
            OSError: If the write or the rename fails
        """
        target = self.get_chunk_path(key)
        fd, temp_name = tempfile.mkstemp(prefix=".", suffix=TEMP_FILE_SUFFIX, dir=self.root)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(temp_name, target)
        except BaseException:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise

    def delete(self, key: ChunkKey) -> bool:
        """
        Delete chunk file from disk.

        Returns:
            True if file was deleted, False if it didn't exist

        Raises:
            OSError: If the storage root is missing or the unlink fails
        """
        try:
            self.get_chunk_path(key).unlink()
            return True
        except FileNotFoundError:
            if not self.root.is_dir():
                raise self._root_missing()
            return False

    def contains(self, key: ChunkKey) -> bool:
        """
        Check if chunk file exists on disk.

        Raises:
            OSError: If the storage root is missing or the stat fails
        """
        try:
            os.stat(self.get_chunk_path(key))
            return True
        except FileNotFoundError:
            if not self.root.is_dir():
                raise self._root_missing()
            return False

    def list_keys(self) -> List[ChunkKey]:
        """
        List all chunk keys in the storage directory.

        Temporary files and anything not named like a chunk are ignored.

        Raises:
            OSError: If the directory cannot be listed
        """
        keys = []
        with os.scandir(self.root) as entries:
            for entry in entries:
                key = parse_chunk_filename(entry.name)
                if key is not None and entry.is_file():
                    keys.append(key)
        return keys

    def scan(self) -> Iterator[Tuple[ChunkKey, int]]:
        with os.scandir(self.root) as entries:
            for entry in entries:
                key = parse_chunk_filename(entry.name)
                if key is None:
                    continue
                try:
                    if not entry.is_file():
                        continue
                    size = entry.stat().st_size
                except FileNotFoundError:
                    continue
                yield key, size

    def capacity(self) -> Optional[BackendCapacity]:
        if not self.root.is_dir():
            return None
        usage = shutil.disk_usage(self.root)
        return BackendCapacity(
            free_bytes=usage.free,
            total_bytes=usage.total,
            can_write=os.access(self.root, os.W_OK)
        )

    def is_available(self) -> bool:
        return self.root.is_dir()

    def describe(self) -> Dict[str, object]:
        summary: Dict[str, object] = {
            "backend": self.name,
            "configured_path": self.configured_path,
            "storage_path": self.storage_path,
        }
        capacity = self.capacity()
        if capacity is not None:
            summary["free_space_mb"] = capacity.free_bytes // BYTES_PER_MB
            summary["total_space_mb"] = capacity.total_bytes // BYTES_PER_MB
            summary["can_write"] = capacity.can_write
        return summary
