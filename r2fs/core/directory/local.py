"""
Local directory handles.

Entries are read in pages: a reader returns successive batches and an
empty batch once the directory is exhausted. A reader cannot be resumed;
a fresh reader starts over.
"""
from pathlib import Path
from typing import List, Optional, Protocol, Union

import aiofiles.os

from ..logging import get_logger
from ..upload.services import FileSource

logger = get_logger('r2fs.directory.local')


class FileHandle(Protocol):
    """A local file that can be uploaded."""

    name: str
    is_directory: bool

    def open_source(self):
        """Return a PayloadSource for the file."""
        ...


class DirectoryReader(Protocol):
    async def read_entries(self) -> List[Union['DirectoryHandle', FileHandle]]:
        """Next batch of entries; empty when exhausted."""
        ...


class DirectoryHandle(Protocol):
    """A local directory whose entries are read in pages."""

    name: str
    is_directory: bool

    def create_reader(self) -> DirectoryReader:
        ...


class LocalFile:
    """File on the local filesystem."""

    is_directory = False

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.name = self.path.name

    def open_source(self) -> FileSource:
        return FileSource(self.path)

    def __repr__(self) -> str:
        return f"LocalFile('{self.path}')"


class LocalDirectoryReader:
    """Pages through one directory listing (sorted by name)."""

    def __init__(self, directory: 'LocalDirectory'):
        self._directory = directory
        self._names: Optional[List[str]] = None
        self._offset = 0

    async def read_entries(self) -> List[Union['LocalDirectory', LocalFile]]:
        if self._names is None:
            self._names = sorted(await aiofiles.os.listdir(self._directory.path))

        # an empty batch means exhausted, so skipped entries must not end the listing early
        entries: List[Union[LocalDirectory, LocalFile]] = []
        while not entries and self._offset < len(self._names):
            batch_names = self._names[self._offset:self._offset + self._directory.batch_size]
            self._offset += len(batch_names)

            for name in batch_names:
                child = self._directory.path / name
                if not await aiofiles.os.path.isdir(child):
                    entries.append(LocalFile(child))
                elif await aiofiles.os.path.islink(child):
                    logger.warning(f"Skipping symlinked directory: {child}")
                else:
                    entries.append(LocalDirectory(child, batch_size=self._directory.batch_size))
        return entries


class LocalDirectory:
    """Directory on the local filesystem."""

    is_directory = True
    DEFAULT_BATCH_SIZE = 100

    def __init__(self, path: Union[str, Path], batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Initialize directory handle.

        Args:
            path: Directory path
            batch_size: Entries returned per read

        Raises:
            NotADirectoryError: If path is not a directory
        """
        if batch_size <= 0:
            raise ValueError("Batch size must be positive")
        self.path = Path(path)
        if not self.path.is_dir():
            raise NotADirectoryError(f"Not a directory: {self.path}")
        # "." and ".." have no usable name of their own
        self.name = self.path.name if self.path.name not in ('', '.', '..') else self.path.resolve().name
        self.batch_size = batch_size

    def create_reader(self) -> LocalDirectoryReader:
        return LocalDirectoryReader(self)

    def __repr__(self) -> str:
        return f"LocalDirectory('{self.path}')"
