"""
Gateway API module.

Configuration and the async HTTP client for the object-store worker.
"""
from .config import (
    Endpoint,
    EndpointRegistry,
    APIConfig,
    SSLConfig,
    TimeoutConfig,
    TransferConfig,
)
from .async_client import AsyncGatewayClient, parse_record, parse_timestamp

__all__ = [
    'Endpoint',
    'EndpointRegistry',
    'APIConfig',
    'SSLConfig',
    'TimeoutConfig',
    'TransferConfig',
    'AsyncGatewayClient',
    'parse_record',
    'parse_timestamp',
]
