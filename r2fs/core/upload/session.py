"""
Transfer session.

Runs one upload from start to a terminal state, either as a single PUT
or through the multipart sub-protocol. Parts are sent strictly one at a
time so a single part buffer is live at any moment.
"""
import asyncio
import time
import uuid
from typing import AsyncIterator, List, Optional

from ..events import EventEmitter
from ..exceptions import CancellationError, PartialUploadError
from ..logging import get_logger
from ..api.config import TransferConfig
from .cancellation import CancellationToken
from .models import CompletedPart, TransferProtocol, TransferState, UploadResult
from .progress import ProgressReporter
from .protocols import ChunkingStrategy, GatewayProtocol, PayloadSource, ProgressCallback
from .strategies import FixedSizeChunkingStrategy

logger = get_logger('r2fs.upload.session')


def choose_protocol(size: int, multipart_supported: bool, threshold: int) -> TransferProtocol:
    """
    Pick single-shot or multipart for a payload.

    Multipart is used only when the gateway supports it and the payload
    is at least `threshold` bytes. Empty payloads always go single-shot.
    """
    if multipart_supported and size > 0 and size >= threshold:
        return TransferProtocol.MULTIPART
    return TransferProtocol.SINGLE


class TransferSession(EventEmitter):
    """
    One upload attempt.

    States: PENDING -> IN_PROGRESS -> COMPLETED | CANCELLED | FAILED.
    Terminal states are final; a new upload needs a new session.

    Events:
        'state': (session, old_state, new_state) on every transition

    Example:
        >>> session = TransferSession(gateway, BytesSource(b"hello"), "docs/hello.txt")
        >>> result = await session.run()
    """

    def __init__(
        self,
        gateway: GatewayProtocol,
        source: PayloadSource,
        destination_key: str,
        *,
        multipart_supported: bool = False,
        config: Optional[TransferConfig] = None,
        chunking_strategy: Optional[ChunkingStrategy] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ):
        """
        Initialize transfer session.

        Args:
            gateway: Gateway client (bound to one endpoint)
            source: Payload to upload
            destination_key: Object key to write
            multipart_supported: Result of the capability probe
            config: Threshold and part size settings
            chunking_strategy: Part partitioning (fixed-size by default)
            progress_callback: Receives percentages in [0, 100]
            cancel_token: Shared cancellation signal
        """
        super().__init__()
        self._gateway = gateway
        self._source = source
        self._key = destination_key
        self._config = config or TransferConfig()
        self._chunking = chunking_strategy or FixedSizeChunkingStrategy(self._config.part_size)
        self._progress = ProgressReporter(progress_callback)
        self._token = cancel_token or CancellationToken()

        self.id = uuid.uuid4().hex
        self._size = source.size
        self._state = TransferState.PENDING
        self._uploaded_bytes = 0
        self._remote_upload_id: Optional[str] = None
        self._parts: List[CompletedPart] = []
        self._protocol = choose_protocol(
            self._size, multipart_supported, self._config.multipart_threshold
        )

    @property
    def destination_key(self) -> str:
        return self._key

    @property
    def size(self) -> int:
        return self._size

    @property
    def state(self) -> TransferState:
        return self._state

    @property
    def protocol(self) -> TransferProtocol:
        return self._protocol

    @property
    def uploaded_bytes(self) -> int:
        return self._uploaded_bytes

    @property
    def remote_upload_id(self) -> Optional[str]:
        return self._remote_upload_id

    @property
    def parts(self) -> List[CompletedPart]:
        """Acknowledged parts, in acknowledgement order."""
        return list(self._parts)

    @property
    def cancel_token(self) -> CancellationToken:
        return self._token

    def cancel(self) -> None:
        """Request cancellation (no effect once completed)."""
        self._token.cancel()

    def _set_state(self, state: TransferState) -> None:
        old = self._state
        if old is state:
            return
        self._state = state
        logger.debug(f"Session {self.id} ({self._key}): {old.value} -> {state.value}")
        self.emit('state', self, old, state)

    async def run(self) -> UploadResult:
        """
        Execute the upload.

        Returns:
            Upload result

        Raises:
            RuntimeError: If the session was already run
            CancellationError: If cancelled before completion
            PartialUploadError: If a multipart upload failed after initiation
            TransportError: If a request failed otherwise
        """
        if self._state is not TransferState.PENDING:
            raise RuntimeError(f"Session {self.id} already {self._state.value}")

        size_mb = self._size / (1024 * 1024)
        logger.info(f"Starting {self._protocol.value} upload: {self._key} ({size_mb:.2f} MB)")
        started = time.time()

        try:
            if self._protocol is TransferProtocol.MULTIPART:
                await self._run_multipart()
            else:
                await self._run_single()
        except (CancellationError, asyncio.CancelledError):
            self._progress.close()
            self._set_state(TransferState.CANCELLED)
            logger.info(f"Upload cancelled: {self._key}")
            raise
        except Exception as e:
            self._progress.close()
            self._set_state(TransferState.FAILED)
            logger.error(f"Upload failed: {self._key}: {e}")
            raise

        self._set_state(TransferState.COMPLETED)
        self._progress.complete()
        logger.info(f"Upload completed in {time.time() - started:.2f}s: {self._key}")

        return UploadResult(
            key=self._key,
            size=self._size,
            protocol=self._protocol,
            parts=len(self._parts) if self._parts else 1,
            upload_id=self._remote_upload_id
        )

    async def _run_single(self) -> None:
        """Single PUT; progress follows the bytes handed to the transport."""
        self._token.raise_if_cancelled()
        self._set_state(TransferState.IN_PROGRESS)

        body = self._stream_body() if self._size else b''
        request = asyncio.ensure_future(
            self._gateway.put_object(
                self._key,
                body,
                self._source.content_type,
                content_length=self._size
            )
        )
        await self._until_done_or_cancelled(request)

    async def _stream_body(self) -> AsyncIterator[bytes]:
        async for block in self._source.iter_blocks(self._config.stream_block_size):
            yield block
            self._uploaded_bytes += len(block)
            self._progress.report(self._uploaded_bytes / self._size * 100)

    async def _until_done_or_cancelled(self, request: asyncio.Future) -> None:
        """
        Wait for the request or the cancellation signal.

        On cancellation the request task is cancelled, which tears down
        the connection.
        """
        waiter = asyncio.ensure_future(self._token.wait())
        try:
            done, _ = await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            request.cancel()
            raise
        finally:
            waiter.cancel()

        if request in done:
            request.result()
            return

        request.cancel()
        try:
            await request
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Cancelled request ended with: {e}")
        raise CancellationError("Transfer cancelled by user")

    async def _run_multipart(self) -> None:
        parts = self._chunking.calculate_parts(self._size)
        total = len(parts)
        logger.info(f"Payload split into {total} parts ({self._config.part_size} bytes each)")

        self._token.raise_if_cancelled()
        self._set_state(TransferState.IN_PROGRESS)
        upload_id = await self._gateway.create_multipart(self._key)
        self._remote_upload_id = upload_id
        logger.debug(f"Multipart upload initiated: {upload_id}")

        try:
            for part in parts:
                self._token.raise_if_cancelled()
                data = await self._source.read(part.start, part.end)
                part_start = time.time()
                etag = await self._gateway.upload_part(self._key, upload_id, part.number, data)
                del data
                self._parts.append(CompletedPart(part_number=part.number, etag=etag))
                self._uploaded_bytes += part.size
                logger.debug(
                    f"Part {part.number}/{total} uploaded in {time.time() - part_start:.2f}s"
                )
                self._progress.report(len(self._parts) / total * 100)
                self._token.raise_if_cancelled()

            self._token.raise_if_cancelled()
            ordered = sorted(self._parts, key=lambda p: p.part_number)
            await self._gateway.complete_multipart(
                self._key, upload_id, [p.to_dict() for p in ordered]
            )
        except CancellationError:
            await self._abort(upload_id)
            raise
        except asyncio.CancelledError:
            await asyncio.shield(self._abort(upload_id))
            raise
        except Exception as e:
            await self._abort(upload_id)
            raise PartialUploadError(self._key, upload_id, e) from e

    async def _abort(self, upload_id: str) -> None:
        """Best-effort release of the remote upload; failures are only logged."""
        try:
            await self._gateway.abort_multipart(self._key, upload_id)
            logger.info(f"Aborted multipart upload {upload_id} for {self._key}")
        except Exception as e:
            logger.warning(f"Failed to abort multipart upload {upload_id} for {self._key}: {e}")
