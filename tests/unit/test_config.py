"""Tests for endpoint and client configuration."""
import dataclasses

import aiohttp
import pytest

from r2fs.core.api import APIConfig, Endpoint, EndpointRegistry, TransferConfig
from r2fs.core.exceptions import ConfigurationError


class TestEndpoint:
    """Test suite for Endpoint."""

    def test_trailing_slash_stripped(self):
        """Test URLs are normalized."""
        endpoint = Endpoint("https://files.example.workers.dev/", "key", "https://cdn.example.com/")

        assert endpoint.url == "https://files.example.workers.dev"
        assert endpoint.custom_domain == "https://cdn.example.com"

    def test_empty_url_rejected(self):
        """Test an endpoint needs a URL."""
        with pytest.raises(ConfigurationError):
            Endpoint("", "key")

    def test_immutable(self):
        """Test endpoints cannot be changed after creation."""
        endpoint = Endpoint("https://a.example", "key")

        with pytest.raises(AttributeError):
            endpoint.url = "https://b.example"

    def test_public_url(self):
        """Test public links use the custom domain."""
        endpoint = Endpoint("https://a.example", "key", "https://cdn.example")

        assert endpoint.public_url("docs/a.txt") == "https://cdn.example/docs/a.txt"

    def test_public_url_without_domain(self):
        """Test no public link without a custom domain."""
        assert Endpoint("https://a.example", "key").public_url("a.txt") is None

    def test_from_env(self):
        """Test environment configuration."""
        endpoint = Endpoint.from_env({
            'R2FS_ENDPOINT_URL': 'https://a.example',
            'R2FS_API_KEY': 'key',
            'R2FS_CUSTOM_DOMAIN': 'https://cdn.example',
        })

        assert endpoint.url == 'https://a.example'
        assert endpoint.api_key == 'key'
        assert endpoint.custom_domain == 'https://cdn.example'

    def test_from_env_missing(self):
        """Test missing variables are a configuration error."""
        with pytest.raises(ConfigurationError):
            Endpoint.from_env({'R2FS_ENDPOINT_URL': 'https://a.example'})


class TestEndpointRegistry:
    """Test suite for EndpointRegistry."""

    def test_no_active_endpoint(self):
        """Test resolving without an endpoint fails."""
        with pytest.raises(ConfigurationError):
            EndpointRegistry().require_active()

    def test_first_endpoint_becomes_active(self):
        """Test the first endpoint added is active."""
        registry = EndpointRegistry()
        first = registry.add(Endpoint("https://a.example", "k1"))
        registry.add(Endpoint("https://b.example", "k2"))

        assert registry.require_active() is first
        assert len(registry) == 2

    def test_activate(self):
        """Test switching the active endpoint."""
        registry = EndpointRegistry()
        registry.add(Endpoint("https://a.example", "k1"))
        second = registry.add(Endpoint("https://b.example", "k2"))

        registry.activate(second.id)

        assert registry.active is second

    def test_snapshot_survives_switch(self):
        """Test a resolved endpoint is unaffected by later switches."""
        registry = EndpointRegistry()
        first = registry.add(Endpoint("https://a.example", "k1"))
        captured = registry.require_active()
        second = registry.add(Endpoint("https://b.example", "k2"), activate=True)

        assert captured is first
        assert captured.url == "https://a.example"
        assert registry.active is second

    def test_remove_active(self):
        """Test removing the active endpoint leaves none active."""
        registry = EndpointRegistry()
        endpoint = registry.add(Endpoint("https://a.example", "k1"))

        registry.remove(endpoint.id)

        assert registry.active is None
        assert registry.list() == []

    def test_unknown_id(self):
        """Test unknown ids raise KeyError."""
        with pytest.raises(KeyError):
            EndpointRegistry().activate("missing")


class TestAPIConfig:
    """Test suite for APIConfig."""

    def test_defaults(self):
        """Test transfer defaults."""
        config = APIConfig.default()

        assert config.api_key_header == 'X-API-Key'
        assert config.transfer.multipart_threshold == 100 * 1024 * 1024
        assert config.transfer.part_size == 5 * 1024 * 1024

    def test_insecure(self):
        """Test SSL verification can be disabled."""
        config = APIConfig.insecure()

        assert config.get_connector_kwargs()['ssl'] is False

    def test_session_kwargs(self):
        """Test headers and timeout for the HTTP session."""
        config = APIConfig(extra_headers={'X-Trace': '1'})

        kwargs = config.get_session_kwargs()

        assert kwargs['headers']['User-Agent'].startswith('r2fs/')
        assert kwargs['headers']['X-Trace'] == '1'
        assert isinstance(kwargs['timeout'], aiohttp.ClientTimeout)
        assert kwargs['timeout'].total is None

    def test_invalid_part_size(self):
        """Test part size must be positive."""
        with pytest.raises(ValueError):
            TransferConfig(part_size=0)

    def test_every_setting_reaches_aiohttp(self):
        """Test client-level settings are all consumed by the HTTP session."""
        config = APIConfig(limit=7, limit_per_host=3)

        connector = config.get_connector_kwargs()

        assert connector['limit'] == 7
        assert connector['limit_per_host'] == 3
        assert {f.name for f in dataclasses.fields(APIConfig)} == {
            'user_agent', 'api_key_header', 'ssl', 'timeout', 'transfer',
            'extra_headers', 'limit_per_host', 'limit',
        }
