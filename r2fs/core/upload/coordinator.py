"""
Upload coordinator.

Creates transfer sessions for one batch of uploads against one gateway.
The multipart capability probe runs at most once per coordinator.
"""
import asyncio
from pathlib import Path
from typing import Optional, Union

from ..api.config import TransferConfig
from ..logging import get_logger
from .cancellation import CancellationToken
from .models import UploadResult
from .protocols import ChunkingStrategy, GatewayProtocol, PayloadSource, ProgressCallback
from .services import BytesSource, FileSource
from .session import TransferSession

logger = get_logger('r2fs.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates uploads for one batch.

    Uses dependency injection for all components, making it:
    - Testable (mock the gateway)
    - Extensible (swap the chunking strategy)

    Example:
        >>> coordinator = UploadCoordinator(gateway)
        >>> result = await coordinator.upload_file("video.mp4", "media/video.mp4")
    """

    def __init__(
        self,
        gateway: GatewayProtocol,
        config: Optional[TransferConfig] = None,
        chunking_strategy: Optional[ChunkingStrategy] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            gateway: Gateway client bound to the endpoint of this batch
            config: Threshold and part size settings
            chunking_strategy: Optional custom partitioning
        """
        self._gateway = gateway
        self._config = config or TransferConfig()
        self._chunking = chunking_strategy
        self._multipart_supported: Optional[bool] = None
        self._probe_lock = asyncio.Lock()

    @property
    def config(self) -> TransferConfig:
        return self._config

    async def supports_multipart(self) -> bool:
        """Capability probe, cached for the lifetime of the coordinator."""
        async with self._probe_lock:
            if self._multipart_supported is None:
                self._multipart_supported = await self._gateway.supports_multipart()
                logger.debug(f"Multipart supported: {self._multipart_supported}")
            return self._multipart_supported

    async def create_session(
        self,
        source: PayloadSource,
        destination_key: str,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> TransferSession:
        """
        Build a session for one payload.

        Payloads below the threshold never trigger the probe.
        """
        supported = False
        if source.size > 0 and source.size >= self._config.multipart_threshold:
            supported = await self.supports_multipart()

        return TransferSession(
            self._gateway,
            source,
            destination_key,
            multipart_supported=supported,
            config=self._config,
            chunking_strategy=self._chunking,
            progress_callback=progress_callback,
            cancel_token=cancel_token
        )

    async def upload(
        self,
        source: PayloadSource,
        destination_key: str,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> UploadResult:
        """
        Upload a payload and wait for a terminal state.

        Raises:
            CancellationError: If cancelled
            PartialUploadError: If a multipart upload failed after initiation
            TransportError: If a request failed otherwise
        """
        session = await self.create_session(source, destination_key, progress_callback, cancel_token)
        return await session.run()

    async def upload_file(
        self,
        file_path: Union[str, Path],
        destination_key: str,
        content_type: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> UploadResult:
        """
        Upload a local file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        source = FileSource(file_path, content_type)
        return await self.upload(source, destination_key, progress_callback, cancel_token)

    async def upload_bytes(
        self,
        data: bytes,
        destination_key: str,
        content_type: str = 'application/octet-stream',
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> UploadResult:
        """Upload an in-memory payload."""
        source = BytesSource(data, content_type)
        return await self.upload(source, destination_key, progress_callback, cancel_token)
