"""Tests for transfer sessions."""
import asyncio

import pytest

from r2fs.core.api import TransferConfig
from r2fs.core.exceptions import CancellationError, PartialUploadError, TransportError
from r2fs.core.upload import (
    BytesSource,
    CancellationToken,
    TransferProtocol,
    TransferSession,
    TransferState,
    choose_protocol,
)

MB = 1024 * 1024

# 12-byte payloads split into 5 + 5 + 2
SMALL = TransferConfig(multipart_threshold=10, part_size=5, stream_block_size=4)


def make_session(gateway, data=b"x" * 12, supported=True, config=SMALL, **kwargs):
    return TransferSession(
        gateway,
        BytesSource(data, "application/octet-stream"),
        "media/video.mp4",
        multipart_supported=supported,
        config=config,
        **kwargs
    )


class TestChooseProtocol:
    """Test suite for protocol selection."""

    def test_below_threshold(self):
        """Test small payloads go single-shot."""
        assert choose_protocol(99 * MB, True, 100 * MB) is TransferProtocol.SINGLE

    def test_at_threshold(self):
        """Test threshold itself selects multipart."""
        assert choose_protocol(100 * MB, True, 100 * MB) is TransferProtocol.MULTIPART

    def test_unsupported(self):
        """Test large payloads go single-shot without capability."""
        assert choose_protocol(500 * MB, False, 100 * MB) is TransferProtocol.SINGLE

    def test_empty_payload(self):
        """Test empty payloads are always single-shot."""
        assert choose_protocol(0, True, 0) is TransferProtocol.SINGLE


class TestSingleShot:
    """Test suite for single-shot sessions."""

    @pytest.mark.asyncio
    async def test_uploads_payload(self, gateway):
        """Test single PUT carries the whole payload."""
        session = make_session(gateway, b"hello world", supported=False)

        result = await session.run()

        assert gateway.names() == ['put']
        assert gateway.objects["media/video.mp4"] == b"hello world"
        assert result.protocol is TransferProtocol.SINGLE
        assert result.parts == 1
        assert result.size == 11
        assert session.state is TransferState.COMPLETED

    @pytest.mark.asyncio
    async def test_progress_follows_bytes(self, gateway):
        """Test progress tracks streamed blocks and ends at 100."""
        seen = []
        session = make_session(gateway, b"0123456789", supported=False, progress_callback=seen.append)

        await session.run()

        assert seen == [40.0, 80.0, 100.0]
        assert session.uploaded_bytes == 10

    @pytest.mark.asyncio
    async def test_empty_payload(self, gateway):
        """Test empty payload is a single empty PUT."""
        seen = []
        session = make_session(gateway, b"", supported=True, progress_callback=seen.append)

        result = await session.run()

        assert result.protocol is TransferProtocol.SINGLE
        assert gateway.objects["media/video.mp4"] == b""
        assert seen == [100.0]

    @pytest.mark.asyncio
    async def test_transport_failure(self, gateway):
        """Test PUT failure marks the session failed."""
        gateway.fail_keys.add("media/video.mp4")
        session = make_session(gateway, b"abc", supported=False)

        with pytest.raises(TransportError):
            await session.run()

        assert session.state is TransferState.FAILED

    @pytest.mark.asyncio
    async def test_cancel_in_flight(self, gateway):
        """Test cancellation aborts an in-flight PUT."""
        gateway.hold_puts = True
        session = make_session(gateway, b"abc", supported=False)

        task = asyncio.ensure_future(session.run())
        await asyncio.wait_for(gateway.put_started.wait(), timeout=1)
        session.cancel()

        with pytest.raises(CancellationError):
            await asyncio.wait_for(task, timeout=1)
        assert session.state is TransferState.CANCELLED


class TestMultipart:
    """Test suite for multipart sessions."""

    @pytest.mark.asyncio
    async def test_parts_in_order(self, gateway):
        """Test initiate, parts and complete with ascending part list."""
        result = await make_session(gateway).run()

        assert gateway.names() == ['create', 'part', 'part', 'part', 'complete']
        assert [c[2] for c in gateway.calls if c[0] == 'part'] == [5, 5, 2]
        _, upload_id, parts = gateway.calls[-1]
        assert upload_id == 'upload-1'
        assert parts == [
            {'ETag': 'etag-1', 'PartNumber': 1},
            {'ETag': 'etag-2', 'PartNumber': 2},
            {'ETag': 'etag-3', 'PartNumber': 3},
        ]
        assert result.protocol is TransferProtocol.MULTIPART
        assert result.parts == 3
        assert result.upload_id == 'upload-1'

    @pytest.mark.asyncio
    async def test_progress_per_part(self, gateway):
        """Test progress advances once per acknowledged part."""
        seen = []

        await make_session(gateway, progress_callback=seen.append).run()

        assert seen == pytest.approx([100 / 3, 200 / 3, 100.0])

    @pytest.mark.asyncio
    async def test_twelve_megabytes_default_parts(self, gateway):
        """Test 12MB with 5MB parts at a lowered threshold."""
        config = TransferConfig(multipart_threshold=10 * MB)
        session = make_session(gateway, b"\0" * (12 * MB), config=config)

        await session.run()

        assert [c[2] for c in gateway.calls if c[0] == 'part'] == [5 * MB, 5 * MB, 2 * MB]

    @pytest.mark.asyncio
    async def test_cancel_after_initiation_aborts_once(self, gateway):
        """Test cancellation after the first part aborts the remote upload."""
        token = CancellationToken()
        gateway.on_part = lambda number: token.cancel()
        seen = []
        session = make_session(gateway, cancel_token=token, progress_callback=seen.append)

        with pytest.raises(CancellationError):
            await session.run()

        assert gateway.names() == ['create', 'part', 'abort']
        assert session.state is TransferState.CANCELLED
        assert seen == pytest.approx([100 / 3])

    @pytest.mark.asyncio
    async def test_task_cancelled_during_part(self, gateway):
        """Test cancelling the task mid-part aborts the remote upload once."""
        gateway.hold_parts = True
        session = make_session(gateway)

        task = asyncio.ensure_future(session.run())
        await asyncio.wait_for(gateway.part_started.wait(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert gateway.names() == ['create', 'part', 'abort']
        assert gateway.calls[-1] == ('abort', 'upload-1')
        assert session.state is TransferState.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_before_initiation(self, gateway):
        """Test a cancelled token stops before any request."""
        token = CancellationToken()
        token.cancel()
        session = make_session(gateway, cancel_token=token)

        with pytest.raises(CancellationError):
            await session.run()

        assert gateway.calls == []
        assert session.state is TransferState.CANCELLED

    @pytest.mark.asyncio
    async def test_part_failure_aborts(self, gateway):
        """Test a failed part aborts and raises PartialUploadError."""
        gateway.fail_parts.add(2)
        session = make_session(gateway)

        with pytest.raises(PartialUploadError) as exc_info:
            await session.run()

        assert gateway.names() == ['create', 'part', 'part', 'abort']
        assert exc_info.value.upload_id == 'upload-1'
        assert isinstance(exc_info.value.cause, TransportError)
        assert session.state is TransferState.FAILED

    @pytest.mark.asyncio
    async def test_abort_failure_swallowed(self, gateway):
        """Test abort errors never replace the original failure."""
        gateway.fail_parts.add(1)
        gateway.abort_error = TransportError("abort failed", status=500)

        with pytest.raises(PartialUploadError):
            await make_session(gateway).run()

        assert gateway.names() == ['create', 'part', 'abort']

    @pytest.mark.asyncio
    async def test_initiate_failure_has_nothing_to_abort(self, gateway):
        """Test initiation failure raises without abort."""
        gateway.create_error = TransportError("create failed", status=500)
        session = make_session(gateway)

        with pytest.raises(TransportError):
            await session.run()

        assert 'abort' not in gateway.names()
        assert session.state is TransferState.FAILED

    @pytest.mark.asyncio
    async def test_no_progress_after_failure(self, gateway):
        """Test progress stops at the last acknowledged part."""
        gateway.fail_parts.add(3)
        seen = []

        with pytest.raises(PartialUploadError):
            await make_session(gateway, progress_callback=seen.append).run()

        assert seen == pytest.approx([100 / 3, 200 / 3])


class TestSessionLifecycle:
    """Test suite for session state handling."""

    @pytest.mark.asyncio
    async def test_state_events(self, gateway):
        """Test state transitions are emitted."""
        transitions = []
        session = make_session(gateway)
        session.on('state', lambda s, old, new: transitions.append((old, new)))

        await session.run()

        assert transitions == [
            (TransferState.PENDING, TransferState.IN_PROGRESS),
            (TransferState.IN_PROGRESS, TransferState.COMPLETED),
        ]

    @pytest.mark.asyncio
    async def test_run_once(self, gateway):
        """Test a finished session cannot be reused."""
        session = make_session(gateway, supported=False)
        await session.run()

        with pytest.raises(RuntimeError):
            await session.run()

    @pytest.mark.asyncio
    async def test_cancel_after_completion_is_noop(self, gateway):
        """Test cancelling a completed session keeps it completed."""
        session = make_session(gateway, supported=False)
        await session.run()

        session.cancel()

        assert session.state is TransferState.COMPLETED

    def test_initial_state(self, gateway):
        """Test new session is pending with its protocol chosen."""
        session = make_session(gateway)

        assert session.state is TransferState.PENDING
        assert session.protocol is TransferProtocol.MULTIPART
        assert session.remote_upload_id is None
        assert session.parts == []
