"""
Data models for the upload pipeline.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class TransferState(str, Enum):
    """Lifecycle of a transfer session."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferState.COMPLETED, TransferState.CANCELLED, TransferState.FAILED)


class TransferProtocol(str, Enum):
    """How a payload is sent."""
    SINGLE = "single"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class PartInfo:
    """
    One part of a multipart upload.

    Attributes:
        number: 1-based part number
        start: Start offset in bytes
        end: End offset in bytes (exclusive)
    """
    number: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Returns part size."""
        return self.end - self.start


@dataclass(frozen=True)
class CompletedPart:
    """An acknowledged part."""
    part_number: int
    etag: str

    def to_dict(self) -> Dict[str, Any]:
        """Gateway completion format."""
        return {'ETag': self.etag, 'PartNumber': self.part_number}


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a completed upload.

    Attributes:
        key: Destination key
        size: Uploaded bytes
        protocol: Single-shot or multipart
        parts: Number of parts (1 for single-shot)
        upload_id: Remote multipart upload id, if any
    """
    key: str
    size: int
    protocol: TransferProtocol
    parts: int = 1
    upload_id: Optional[str] = None
