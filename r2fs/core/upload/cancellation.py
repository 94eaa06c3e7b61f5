"""Cooperative cancellation signal."""
import asyncio

from ..exceptions import CancellationError


class CancellationToken:
    """
    One cancellation signal shared by a whole transfer or folder upload.

    Work checks the token at fixed points; setting it never interrupts
    a request by itself.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """
        Raises:
            CancellationError: If cancellation was requested
        """
        if self._event.is_set():
            raise CancellationError("Transfer cancelled by user")

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()
