"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol, Union

from .models import PartInfo

ProgressCallback = Callable[[float], None]


class ChunkingStrategy(Protocol):
    """Protocol for payload partitioning strategies."""

    def calculate_parts(self, file_size: int) -> List[PartInfo]:
        """
        Calculate part boundaries for a payload.

        Args:
            file_size: Total payload size in bytes

        Returns:
            Parts in ascending part-number order
        """
        ...


class PayloadSource(Protocol):
    """Readable payload of known size."""

    @property
    def size(self) -> int:
        ...

    @property
    def content_type(self) -> str:
        ...

    async def read(self, start: int, end: int) -> bytes:
        """Read bytes [start, end)."""
        ...

    def iter_blocks(self, block_size: int) -> AsyncIterator[bytes]:
        """Yield the whole payload in blocks."""
        ...


class GatewayProtocol(Protocol):
    """The gateway operations an upload session needs."""

    async def supports_multipart(self) -> bool:
        ...

    async def put_object(
        self,
        key: str,
        body: Union[bytes, AsyncIterator[bytes]],
        content_type: str = 'application/octet-stream',
        content_length: Optional[int] = None
    ) -> None:
        ...

    async def create_multipart(self, key: str) -> str:
        ...

    async def upload_part(self, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        ...

    async def complete_multipart(self, key: str, upload_id: str, parts: List[Dict[str, Any]]) -> None:
        ...

    async def abort_multipart(self, key: str, upload_id: str) -> None:
        ...
