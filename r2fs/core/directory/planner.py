"""
Folder upload planning.

Turns a local directory tree into an ordered list of remote operations.
Traversal is depth-first pre-order over an explicit stack, so a folder's
CreateFolder always precedes everything inside it.
"""
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional, Tuple, Union

from ..logging import get_logger
from ..path import Cursor, join
from ..upload.cancellation import CancellationToken
from .local import DirectoryHandle, FileHandle

logger = get_logger('r2fs.directory.planner')


@dataclass(frozen=True)
class CreateFolder:
    """Create the directory marker for `path` (ends with "/")."""
    path: str


@dataclass(frozen=True)
class UploadFile:
    """Upload the local file to key `path`."""
    path: str
    handle: FileHandle


Operation = Union[CreateFolder, UploadFile]


class DirectoryUploadPlanner:
    """
    Plans the upload of one local directory.

    Example:
        >>> planner = DirectoryUploadPlanner()
        >>> ops = await planner.plan(LocalDirectory("photos"), "backup/")
        >>> ops[0]
        CreateFolder(path='backup/photos/')
    """

    def __init__(self, cancel_token: Optional[CancellationToken] = None):
        """
        Initialize planner.

        Args:
            cancel_token: Checked before every traversal step
        """
        self._token = cancel_token

    async def iter_plan(
        self,
        root: DirectoryHandle,
        destination: Union[str, Cursor] = ""
    ) -> AsyncIterator[Operation]:
        """
        Lazily yield operations in execution order.

        Args:
            root: Selected local directory
            destination: Remote folder receiving the directory

        Yields:
            CreateFolder / UploadFile operations

        Raises:
            CancellationError: If the token is cancelled during traversal
        """
        stack: List[Tuple[Union[DirectoryHandle, FileHandle], str]] = [
            (root, join(destination, root.name, folder=True))
        ]

        while stack:
            if self._token:
                self._token.raise_if_cancelled()

            handle, path = stack.pop()
            if not handle.is_directory:
                yield UploadFile(path=path, handle=handle)
                continue

            yield CreateFolder(path=path)

            children = await self._read_all(handle)
            logger.debug(f"{path}: {len(children)} entries")
            for child in reversed(children):
                stack.append((child, join(path, child.name, folder=child.is_directory)))

    async def plan(
        self,
        root: DirectoryHandle,
        destination: Union[str, Cursor] = ""
    ) -> List[Operation]:
        """Collect the whole plan into a list."""
        return [op async for op in self.iter_plan(root, destination)]

    async def _read_all(self, directory: DirectoryHandle) -> list:
        """Drain a fresh reader until it returns an empty batch."""
        reader = directory.create_reader()
        entries = []
        while True:
            if self._token:
                self._token.raise_if_cancelled()
            batch = await reader.read_entries()
            if not batch:
                break
            entries.extend(batch)
        return entries
