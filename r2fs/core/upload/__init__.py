"""
Upload module.

Single-shot and multipart uploads with progress reporting, cooperative
cancellation and remote cleanup on failure.
"""
from .coordinator import UploadCoordinator
from .session import TransferSession, choose_protocol
from .cancellation import CancellationToken
from .progress import ProgressReporter
from .models import (
    TransferState,
    TransferProtocol,
    PartInfo,
    CompletedPart,
    UploadResult,
)
from .protocols import ChunkingStrategy, PayloadSource, GatewayProtocol, ProgressCallback
from .services import FileSource, BytesSource, FileValidator
from .strategies import FixedSizeChunkingStrategy

__all__ = [
    # Main classes
    'UploadCoordinator',
    'TransferSession',
    'choose_protocol',
    'CancellationToken',
    'ProgressReporter',

    # Models
    'TransferState',
    'TransferProtocol',
    'PartInfo',
    'CompletedPart',
    'UploadResult',

    # Protocols
    'ChunkingStrategy',
    'PayloadSource',
    'GatewayProtocol',
    'ProgressCallback',

    # Sources and strategies
    'FileSource',
    'BytesSource',
    'FileValidator',
    'FixedSizeChunkingStrategy',
]
