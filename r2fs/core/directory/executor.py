"""
Folder upload execution.

Runs a plan one operation at a time, in plan order, so every folder
marker exists before anything below it is uploaded.
"""
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Optional, Union

from ..exceptions import CancellationError, R2FsError, TransportError
from ..logging import get_logger
from ..path import Cursor
from ..upload.cancellation import CancellationToken
from ..upload.coordinator import UploadCoordinator
from ..upload.models import UploadResult
from .local import DirectoryHandle
from .planner import CreateFolder, DirectoryUploadPlanner, Operation

logger = get_logger('r2fs.directory.executor')

FileProgressCallback = Callable[[str, float], None]


@dataclass(frozen=True)
class OperationFailure:
    """A failed operation and its error."""
    path: str
    error: BaseException


@dataclass
class DirectoryUploadResult:
    """
    Outcome of a folder upload.

    Attributes:
        created_folders: Folder markers written (or already present)
        uploaded: Completed file uploads
        skipped: Paths not attempted because an ancestor folder failed
        failures: Failed operations
    """
    created_folders: List[str] = field(default_factory=list)
    uploaded: List[UploadResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[OperationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.skipped


class DirectoryUploadExecutor:
    """
    Executes folder upload plans sequentially.

    Folder creation that fails because the marker already exists counts
    as success. Any other folder failure skips the rest of that subtree
    while siblings continue.
    """

    EXISTS_STATUSES = (409, 412)

    def __init__(self, gateway, coordinator: Optional[UploadCoordinator] = None):
        """
        Initialize executor.

        Args:
            gateway: Gateway client used for folder markers
            coordinator: Upload coordinator for files (one per batch)
        """
        self._gateway = gateway
        self._coordinator = coordinator or UploadCoordinator(gateway)

    async def run(
        self,
        root: DirectoryHandle,
        destination: Union[str, Cursor] = "",
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[FileProgressCallback] = None,
        on_operation: Optional[Callable[[Operation], None]] = None
    ) -> DirectoryUploadResult:
        """
        Plan and execute the upload of `root` into `destination`.

        Args:
            root: Local directory to upload
            destination: Remote folder receiving the directory
            cancel_token: Shared by the planner and every file session
            progress_callback: Receives (key, percent) for each file
            on_operation: Called before each operation starts

        Returns:
            Result with created folders, uploads, skips and failures

        Raises:
            CancellationError: If cancelled; remaining operations are dropped
        """
        token = cancel_token or CancellationToken()
        planner = DirectoryUploadPlanner(token)
        result = DirectoryUploadResult()
        blocked: List[str] = []

        async for op in planner.iter_plan(root, destination):
            if any(op.path.startswith(prefix) for prefix in blocked):
                logger.debug(f"Skipping {op.path}: parent folder failed")
                result.skipped.append(op.path)
                continue

            token.raise_if_cancelled()
            if on_operation:
                on_operation(op)

            if isinstance(op, CreateFolder):
                if await self._create_folder(op.path, result):
                    result.created_folders.append(op.path)
                else:
                    blocked.append(op.path)
                continue

            file_progress = partial(progress_callback, op.path) if progress_callback else None
            try:
                source = op.handle.open_source()
                uploaded = await self._coordinator.upload(
                    source, op.path, progress_callback=file_progress, cancel_token=token
                )
            except CancellationError:
                raise
            except (R2FsError, OSError, ValueError) as e:
                logger.error(f"Failed to upload {op.path}: {e}")
                result.failures.append(OperationFailure(op.path, e))
                continue
            result.uploaded.append(uploaded)

        logger.info(
            f"Folder upload finished: {len(result.created_folders)} folders, "
            f"{len(result.uploaded)} files, {len(result.failures)} failures, "
            f"{len(result.skipped)} skipped"
        )
        return result

    async def _create_folder(self, path: str, result: DirectoryUploadResult) -> bool:
        try:
            await self._gateway.create_folder(path)
        except TransportError as e:
            if e.status in self.EXISTS_STATUSES:
                logger.debug(f"Folder already exists: {path}")
                return True
            logger.error(f"Failed to create folder {path}: {e}")
            result.failures.append(OperationFailure(path, e))
            return False
        return True
