"""
File validation and payload sources.

Single Responsibility: Each class handles one specific task.
"""
import mimetypes
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple, Union

import aiofiles

from ...logging import get_logger

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def guess_content_type(name: str) -> str:
    """Content type from a file name, octet-stream when unknown."""
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


class FileValidator:
    """
    Validates files before upload.

    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    - Get file size
    """

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (validated Path, file size in bytes)

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")

        file_size = path.stat().st_size

        return path, file_size


class BytesSource:
    """In-memory payload."""

    def __init__(self, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE):
        self._data = bytes(data)
        self._content_type = content_type

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def content_type(self) -> str:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        return self._data[start:end]

    async def iter_blocks(self, block_size: int) -> AsyncIterator[bytes]:
        for offset in range(0, len(self._data), block_size):
            yield self._data[offset:offset + block_size]


class FileSource:
    """
    Payload backed by a local file.

    Uses aiofiles for non-blocking I/O. Only the requested range is held
    in memory.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        content_type: Optional[str] = None,
        validator: Optional[FileValidator] = None
    ):
        """
        Initialize file source.

        Args:
            file_path: Path to a regular file
            content_type: Content type (guessed from the name when omitted)
            validator: File validator

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        self._path, self._size = (validator or FileValidator()).validate(file_path)
        self._content_type = content_type or guess_content_type(self._path.name)
        self._logger = get_logger('r2fs.upload.file')

    @property
    def path(self) -> Path:
        return self._path

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> str:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        """
        Read a byte range.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is shorter than expected
        """
        async with aiofiles.open(self._path, 'rb') as f:
            await f.seek(start)
            data = await f.read(end - start)
        if len(data) != end - start:
            raise ValueError(
                f"Short read from {self._path}: expected {end - start} bytes at {start}, got {len(data)}"
            )
        self._logger.debug(f"Read range: {start}-{end} ({len(data)} bytes)")
        return data

    async def iter_blocks(self, block_size: int) -> AsyncIterator[bytes]:
        async with aiofiles.open(self._path, 'rb') as f:
            while True:
                block = await f.read(block_size)
                if not block:
                    break
                yield block
