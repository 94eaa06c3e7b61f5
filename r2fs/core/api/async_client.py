"""
Async gateway client.

Speaks the HTTP contract of the object-store worker. One client is bound
to one Endpoint for its whole lifetime.
"""
import asyncio
import json
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import aiohttp

from .config import APIConfig, Endpoint
from ..exceptions import MalformedRecordError, TransportError
from ..logging import get_logger
from ..storage.models import DIRECTORY_CONTENT_TYPE, ObjectRecord

Body = Union[bytes, AsyncIterator[bytes]]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the gateway."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def parse_record(raw: Any) -> ObjectRecord:
    """
    Convert one raw listing entry into an ObjectRecord.

    Raises:
        MalformedRecordError: If the entry has no usable key, size or timestamp
    """
    if not isinstance(raw, dict):
        raise MalformedRecordError(None, "entry is not an object")
    key = raw.get('key')
    if not isinstance(key, str) or not key:
        raise MalformedRecordError(None, "missing key")

    try:
        size = int(raw.get('size') or 0)
    except (TypeError, ValueError):
        raise MalformedRecordError(key, f"invalid size {raw.get('size')!r}")

    try:
        uploaded_at = parse_timestamp(raw.get('uploaded'))
    except ValueError as e:
        raise MalformedRecordError(key, f"invalid upload time: {e}")

    metadata = raw.get('httpMetadata') or {}
    content_type = metadata.get('contentType') if isinstance(metadata, dict) else None

    return ObjectRecord(
        key=key,
        size=size,
        content_type=content_type or "",
        uploaded_at=uploaded_at
    )


class AsyncGatewayClient:
    """
    Asynchronous object-store gateway client.

    Features:
    - Credential header on every request
    - Shared or owned aiohttp session
    - Typed errors (TransportError) with status and body text
    - No automatic retries

    Example:
        >>> endpoint = Endpoint(url="https://worker.example.com", api_key="secret")
        >>> async with AsyncGatewayClient(endpoint) as gateway:
        ...     records = await gateway.list_objects()
    """

    def __init__(
        self,
        endpoint: Endpoint,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize gateway client.

        Args:
            endpoint: Endpoint captured for the lifetime of this client
            config: Client configuration (uses defaults if not provided)
            session: Optional shared aiohttp session
        """
        self._endpoint = endpoint
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger('r2fs.api')

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def config(self) -> APIConfig:
        return self._config

    async def __aenter__(self) -> 'AsyncGatewayClient':
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    @staticmethod
    def object_path(key: str) -> str:
        """URL path for an object key ("/" kept as is)."""
        return f"/{quote(key, safe='/')}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Body] = None,
        headers: Optional[Dict[str, str]] = None,
        expect: Optional[str] = None
    ) -> Any:
        """
        Send one request and decode the response.

        Args:
            method: HTTP method
            path: Path below the endpoint URL
            params: Query string parameters
            data: Request body
            headers: Extra request headers
            expect: 'json', 'bytes' or None (discard body)

        Raises:
            TransportError: On non-2xx status or network failure
        """
        session = await self._ensure_session()
        url = f"{self._endpoint.url}{path}"
        request_headers = {
            self._config.api_key_header: self._endpoint.api_key,
            **(headers or {})
        }

        self._logger.debug(f"{method} {url} params={params}")

        try:
            async with session.request(
                method,
                url,
                params=params,
                data=data,
                headers=request_headers
            ) as response:
                if not 200 <= response.status < 300:
                    body = await response.text()
                    self._logger.error(f"{method} {path} failed: HTTP {response.status} {body[:300]}")
                    raise TransportError.from_response(
                        method, path, response.status, response.reason or "", body
                    )
                if expect == 'json':
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise TransportError(
                            f"Invalid JSON response: {e}",
                            status=response.status,
                            method=method,
                            path=path
                        ) from e
                if expect == 'bytes':
                    return await response.read()
                return None
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error on {method} {path}: {e}")
            raise TransportError(f"Network error: {e}", method=method, path=path) from e
        except asyncio.TimeoutError as e:
            self._logger.error(f"Timeout on {method} {path}")
            raise TransportError("Request timed out", method=method, path=path) from e

    async def list_objects(
        self,
        on_malformed: Optional[Callable[[MalformedRecordError], None]] = None
    ) -> List[ObjectRecord]:
        """
        Fetch the full flat listing.

        Entries that cannot be parsed are skipped and reported.

        Args:
            on_malformed: Optional diagnostic sink for skipped entries

        Returns:
            Object records in gateway order
        """
        data = await self._request('PATCH', '/', expect='json')
        raw_objects = data.get('objects') if isinstance(data, dict) else None

        records = []
        for raw in raw_objects or []:
            try:
                records.append(parse_record(raw))
            except MalformedRecordError as e:
                self._logger.warning(f"Skipping listing entry: {e}")
                if on_malformed:
                    on_malformed(e)
        self._logger.debug(f"Listed {len(records)} objects")
        return records

    async def supports_multipart(self) -> bool:
        """Probe the capability endpoint; any failure means unsupported."""
        try:
            await self._request('GET', '/support_mpu')
        except TransportError as e:
            self._logger.debug(f"Multipart upload not supported: {e}")
            return False
        return True

    async def put_object(
        self,
        key: str,
        body: Body,
        content_type: str = 'application/octet-stream',
        content_length: Optional[int] = None
    ) -> None:
        """Single-shot upload of a whole payload."""
        headers = {'Content-Type': content_type}
        if content_length is not None:
            headers['Content-Length'] = str(content_length)
        await self._request('PUT', self.object_path(key), data=body, headers=headers)

    async def create_folder(self, path: str) -> None:
        """Write a directory marker object ("/"-terminated key, empty body)."""
        if not path.endswith('/'):
            path = f"{path}/"
        await self.put_object(path, b'', DIRECTORY_CONTENT_TYPE)

    async def create_multipart(self, key: str) -> str:
        """Initiate a multipart upload and return its upload id."""
        data = await self._request('POST', f"/mpu/create{self.object_path(key)}", expect='json')
        upload_id = data.get('uploadId') if isinstance(data, dict) else None
        if not upload_id:
            raise TransportError(
                "Gateway returned no uploadId",
                method='POST',
                path=f"/mpu/create{self.object_path(key)}"
            )
        return upload_id

    async def upload_part(self, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        """Upload one part and return its ETag."""
        path = f"/mpu{self.object_path(key)}"
        result = await self._request(
            'PUT',
            path,
            params={'partNumber': str(part_number), 'uploadId': upload_id},
            data=data,
            expect='json'
        )
        etag = result.get('ETag') if isinstance(result, dict) else None
        if not etag:
            raise TransportError(f"Gateway returned no ETag for part {part_number}", method='PUT', path=path)
        return etag

    async def complete_multipart(self, key: str, upload_id: str, parts: List[Dict[str, Any]]) -> None:
        """
        Finalize a multipart upload.

        Args:
            key: Destination key
            upload_id: Remote upload id
            parts: [{'ETag': ..., 'PartNumber': ...}] in ascending PartNumber
        """
        await self._request(
            'POST',
            f"/mpu/complete{self.object_path(key)}",
            params={'uploadId': upload_id},
            data=json.dumps({'parts': parts}).encode(),
            headers={'Content-Type': 'application/json'}
        )

    async def abort_multipart(self, key: str, upload_id: str) -> None:
        """Release server-side resources of a multipart upload."""
        await self._request(
            'DELETE',
            f"/mpu{self.object_path(key)}",
            params={'uploadId': upload_id}
        )

    async def delete_object(self, key: str) -> None:
        await self._request('DELETE', self.object_path(key))

    async def get_object(self, key: str) -> bytes:
        """Download a whole object into memory."""
        return await self._request('GET', self.object_path(key), expect='bytes')

    async def iter_object(self, key: str, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        """
        Stream an object in chunks.

        Raises:
            TransportError: On non-2xx status or network failure
        """
        session = await self._ensure_session()
        path = self.object_path(key)
        headers = {self._config.api_key_header: self._endpoint.api_key}
        try:
            async with session.get(f"{self._endpoint.url}{path}", headers=headers) as response:
                if not 200 <= response.status < 300:
                    body = await response.text()
                    raise TransportError.from_response('GET', path, response.status, response.reason or "", body)
                async for chunk in response.content.iter_chunked(chunk_size):
                    yield chunk
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error on GET {path}: {e}")
            raise TransportError(f"Network error: {e}", method='GET', path=path) from e
