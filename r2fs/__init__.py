"""
r2fs - Async Python client that browses a flat object store as folders.

Usage:
    >>> from r2fs import R2Client, Endpoint
    >>>
    >>> async with R2Client(Endpoint(url, api_key)) as r2:
    ...     for entry in await r2.ls("docs"):
    ...         print(entry.display_name)
"""
import logging

from .client import R2Client

# Configuration
from .core.api import (
    Endpoint,
    EndpointRegistry,
    APIConfig,
    SSLConfig,
    TimeoutConfig,
    TransferConfig,
    AsyncGatewayClient,
)

# Namespace
from .core.path import Cursor
from .core.storage import ObjectRecord, NamespaceEntry, EntryKind, NamespaceProjector, project

# Transfers
from .core.upload import (
    UploadCoordinator,
    TransferSession,
    TransferState,
    TransferProtocol,
    CancellationToken,
    UploadResult,
)
from .core.directory import DirectoryUploadPlanner, DirectoryUploadExecutor, LocalDirectory

# Errors
from .core.exceptions import (
    R2FsError,
    ConfigurationError,
    TransportError,
    CancellationError,
    MalformedRecordError,
    PartialUploadError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for r2fs modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'r2fs',
        'r2fs.client',
        'r2fs.api',
        'r2fs.events',
        'r2fs.storage.projector',
        'r2fs.upload.session',
        'r2fs.upload.coordinator',
        'r2fs.upload.progress',
        'r2fs.upload.file',
        'r2fs.directory.local',
        'r2fs.directory.planner',
        'r2fs.directory.executor',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'R2Client',
    'Endpoint',
    'EndpointRegistry',
    'APIConfig',
    'SSLConfig',
    'TimeoutConfig',
    'TransferConfig',
    'AsyncGatewayClient',
    'Cursor',
    'ObjectRecord',
    'NamespaceEntry',
    'EntryKind',
    'NamespaceProjector',
    'project',
    'UploadCoordinator',
    'TransferSession',
    'TransferState',
    'TransferProtocol',
    'CancellationToken',
    'UploadResult',
    'DirectoryUploadPlanner',
    'DirectoryUploadExecutor',
    'LocalDirectory',
    'R2FsError',
    'ConfigurationError',
    'TransportError',
    'CancellationError',
    'MalformedRecordError',
    'PartialUploadError',
    'setup_logging',
]
