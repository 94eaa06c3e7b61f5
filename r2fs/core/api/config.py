"""
API configuration module.

Provides configuration for the object-store gateway client.
Endpoints are immutable so an operation can capture one at its start.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
import os
import ssl
import uuid

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class Endpoint:
    """
    One gateway endpoint.

    Attributes:
        url: Worker base URL (no trailing slash)
        api_key: Credential sent with every request
        custom_domain: Optional public base URL for shareable links
        id: Registry identifier
    """
    url: str
    api_key: str
    custom_domain: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if not self.url:
            raise ConfigurationError("Endpoint URL must not be empty")
        object.__setattr__(self, 'url', self.url.rstrip('/'))
        if self.custom_domain:
            object.__setattr__(self, 'custom_domain', self.custom_domain.rstrip('/'))

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> 'Endpoint':
        """
        Build an endpoint from R2FS_* environment variables.

        Raises:
            ConfigurationError: If R2FS_ENDPOINT_URL or R2FS_API_KEY is missing
        """
        env = os.environ if environ is None else environ
        url = env.get('R2FS_ENDPOINT_URL')
        api_key = env.get('R2FS_API_KEY')
        if not url or not api_key:
            raise ConfigurationError(
                "No endpoint configured: set R2FS_ENDPOINT_URL and R2FS_API_KEY"
            )
        return cls(url=url, api_key=api_key, custom_domain=env.get('R2FS_CUSTOM_DOMAIN') or None)

    def public_url(self, key: str) -> Optional[str]:
        """Public URL of an object, or None without a custom domain."""
        if not self.custom_domain:
            return None
        return f"{self.custom_domain}/{key}"


class EndpointRegistry:
    """
    In-memory set of endpoints with one optional active entry.

    Changing the active endpoint never affects operations already running:
    they hold the Endpoint they resolved at start.
    """

    def __init__(self, endpoints: Optional[List[Endpoint]] = None, active_id: Optional[str] = None):
        self._endpoints: Dict[str, Endpoint] = {e.id: e for e in endpoints or []}
        self._active_id = active_id

    def __len__(self) -> int:
        return len(self._endpoints)

    def list(self) -> List[Endpoint]:
        return list(self._endpoints.values())

    def add(self, endpoint: Endpoint, activate: bool = False) -> Endpoint:
        """Add or replace an endpoint (by id)."""
        self._endpoints[endpoint.id] = endpoint
        if activate or self._active_id is None:
            self._active_id = endpoint.id
        return endpoint

    def remove(self, endpoint_id: str) -> None:
        if endpoint_id not in self._endpoints:
            raise KeyError(f"Endpoint '{endpoint_id}' does not exist")
        del self._endpoints[endpoint_id]
        if self._active_id == endpoint_id:
            self._active_id = None

    def activate(self, endpoint_id: str) -> Endpoint:
        if endpoint_id not in self._endpoints:
            raise KeyError(f"Endpoint '{endpoint_id}' does not exist")
        self._active_id = endpoint_id
        return self._endpoints[endpoint_id]

    @property
    def active(self) -> Optional[Endpoint]:
        if self._active_id is None:
            return None
        return self._endpoints.get(self._active_id)

    def require_active(self) -> Endpoint:
        """
        Resolve the active endpoint.

        Raises:
            ConfigurationError: If no endpoint is active
        """
        endpoint = self.active
        if endpoint is None:
            raise ConfigurationError("No active endpoint configured")
        return endpoint


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for security requirements.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Transfers rely on these transport defaults; the pipeline adds none.
    """
    total: Optional[float] = None  # Large uploads must not be cut off
    connect: float = 30.0
    sock_read: float = 300.0
    sock_connect: float = 30.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class TransferConfig:
    """
    Upload pipeline settings.

    Attributes:
        multipart_threshold: Payloads of at least this size use multipart
        part_size: Size of every part except the last
        stream_block_size: Block size for single-shot streaming progress
    """
    multipart_threshold: int = 100 * 1024 * 1024
    part_size: int = 5 * 1024 * 1024
    stream_block_size: int = 64 * 1024

    def __post_init__(self):
        if self.part_size <= 0:
            raise ValueError("Part size must be positive")
        if self.stream_block_size <= 0:
            raise ValueError("Stream block size must be positive")


@dataclass
class APIConfig:
    """
    Complete client configuration.

    Centralizes all configuration options for the gateway client.
    """
    user_agent: str = 'r2fs/1.0.0'
    api_key_header: str = 'X-API-Key'

    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
