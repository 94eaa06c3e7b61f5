"""
R2Client - High-level async client for an object-store gateway.

Example:
    >>> endpoint = Endpoint(url="https://files.example.workers.dev", api_key="secret")
    >>> async with R2Client(endpoint) as r2:
    ...     for entry in await r2.ls():
    ...         print(entry.display_name)
    ...     await r2.cd("docs")
    ...     await r2.upload("report.pdf")
"""
from pathlib import Path
from typing import Callable, List, Optional, Union

import aiofiles
import aiofiles.os
import aiohttp

from .core.api import APIConfig, AsyncGatewayClient, Endpoint, EndpointRegistry
from .core.directory import DirectoryUploadExecutor, DirectoryUploadResult, LocalDirectory
from .core.exceptions import MalformedRecordError
from .core.logging import get_logger
from .core.path import Cursor, basename, join
from .core.storage import NamespaceEntry, NamespaceProjector, ObjectRecord
from .core.upload import CancellationToken, UploadCoordinator, UploadResult
from .core.upload.services import guess_content_type

logger = get_logger('r2fs.client')

TEXT_CONTENT_TYPES = {
    'md': 'text/markdown',
}


class R2Client:
    """
    Browse and modify a flat bucket as a folder tree.

    The client keeps a browsing cursor (starting at the root). Every
    operation resolves the active endpoint once, when it starts.
    """

    def __init__(
        self,
        endpoint: Optional[Endpoint] = None,
        *,
        registry: Optional[EndpointRegistry] = None,
        config: Optional[APIConfig] = None
    ):
        """
        Initialize client.

        Args:
            endpoint: Endpoint to use (added to the registry and activated)
            registry: Endpoint registry shared with the caller
            config: Client configuration
        """
        self._registry = registry or EndpointRegistry()
        if endpoint is not None:
            self._registry.add(endpoint, activate=True)
        self._config = config or APIConfig.default()
        self._http: Optional[aiohttp.ClientSession] = None
        self._cursor = Cursor()

    @property
    def registry(self) -> EndpointRegistry:
        return self._registry

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    async def __aenter__(self) -> 'R2Client':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the shared HTTP session."""
        if self._http and not self._http.closed:
            await self._http.close()
        self._http = None

    async def _gateway(self) -> AsyncGatewayClient:
        """Gateway bound to the endpoint active right now."""
        endpoint = self._registry.require_active()
        if self._http is None or self._http.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._http = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
        return AsyncGatewayClient(endpoint, self._config, session=self._http)

    # Navigation

    def pwd(self) -> str:
        """Current folder as an absolute path."""
        return str(self._cursor)

    def resolve(self, path: Optional[str] = None) -> Cursor:
        """
        Resolve a folder path against the cursor.

        Absolute paths start with "/"; ".." moves up one level.
        """
        if path is None:
            return self._cursor
        cursor = Cursor() if path.startswith('/') else self._cursor
        for part in path.split('/'):
            if not part or part == '.':
                continue
            cursor = cursor.up() if part == '..' else cursor.enter(part)
        return cursor

    def cd(self, path: str = '/') -> Cursor:
        """Move the cursor; folders are virtual so nothing is checked remotely."""
        self._cursor = self.resolve(path)
        return self._cursor

    def up(self) -> Cursor:
        self._cursor = self._cursor.up()
        return self._cursor

    # Listing

    async def list_records(
        self,
        on_malformed: Optional[Callable[[MalformedRecordError], None]] = None
    ) -> List[ObjectRecord]:
        """Full flat listing, always fetched fresh."""
        gateway = await self._gateway()
        return await gateway.list_objects(on_malformed=on_malformed)

    async def ls(
        self,
        path: Optional[str] = None,
        on_malformed: Optional[Callable[[MalformedRecordError], None]] = None
    ) -> List[NamespaceEntry]:
        """
        Entries visible in a folder (the cursor by default).

        Args:
            path: Folder to list, relative to the cursor or absolute
            on_malformed: Diagnostic sink for skipped records

        Returns:
            Unsorted entries
        """
        cursor = self.resolve(path)
        records = await self.list_records(on_malformed=on_malformed)
        return NamespaceProjector(on_malformed=on_malformed).project(records, cursor)

    # Mutations

    async def mkdir(self, name: str, path: Optional[str] = None) -> str:
        """
        Create a folder marker.

        Returns:
            Marker key (ends with "/")
        """
        key = join(self.resolve(path), name, folder=True)
        gateway = await self._gateway()
        await gateway.create_folder(key)
        logger.info(f"Folder created: {key}")
        return key

    async def touch(self, name: str, path: Optional[str] = None) -> str:
        """
        Create an empty file.

        Markdown files get text/markdown, everything else text/plain.

        Returns:
            Object key
        """
        key = join(self.resolve(path), name)
        extension = name.rsplit('.', 1)[-1].lower() if '.' in name else ''
        content_type = TEXT_CONTENT_TYPES.get(extension, 'text/plain')
        gateway = await self._gateway()
        await gateway.put_object(key, b'', content_type)
        logger.info(f"File created: {key}")
        return key

    async def upload(
        self,
        file_path: Union[str, Path],
        name: Optional[str] = None,
        path: Optional[str] = None,
        progress_callback: Optional[Callable[[float], None]] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> UploadResult:
        """
        Upload a local file into a folder.

        Args:
            file_path: Local file
            name: Remote name (defaults to the local name)
            path: Destination folder (cursor by default)
            progress_callback: Receives percentages in [0, 100]
            cancel_token: Cancellation signal

        Returns:
            Upload result
        """
        file_path = Path(file_path)
        key = join(self.resolve(path), name or file_path.name)
        coordinator = UploadCoordinator(await self._gateway(), self._config.transfer)
        return await coordinator.upload_file(
            file_path,
            key,
            progress_callback=progress_callback,
            cancel_token=cancel_token
        )

    async def upload_bytes(
        self,
        data: bytes,
        name: str,
        path: Optional[str] = None,
        content_type: Optional[str] = None,
        progress_callback: Optional[Callable[[float], None]] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> UploadResult:
        """Upload an in-memory payload into a folder."""
        key = join(self.resolve(path), name)
        coordinator = UploadCoordinator(await self._gateway(), self._config.transfer)
        return await coordinator.upload_bytes(
            data,
            key,
            content_type or guess_content_type(name),
            progress_callback=progress_callback,
            cancel_token=cancel_token
        )

    async def upload_folder(
        self,
        dir_path: Union[str, Path],
        path: Optional[str] = None,
        progress_callback: Optional[Callable[[str, float], None]] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_operation: Optional[Callable] = None
    ) -> DirectoryUploadResult:
        """
        Upload a local directory tree into a folder.

        Args:
            dir_path: Local directory
            path: Destination folder (cursor by default)
            progress_callback: Receives (key, percent) per file
            cancel_token: Shared by all operations
            on_operation: Called before each operation

        Returns:
            Folder upload result
        """
        gateway = await self._gateway()
        executor = DirectoryUploadExecutor(
            gateway,
            UploadCoordinator(gateway, self._config.transfer)
        )
        return await executor.run(
            LocalDirectory(dir_path),
            self.resolve(path),
            cancel_token=cancel_token,
            progress_callback=progress_callback,
            on_operation=on_operation
        )

    async def delete(self, key: str) -> None:
        gateway = await self._gateway()
        await gateway.delete_object(key)
        logger.info(f"Deleted: {key}")

    async def read(self, key: str) -> bytes:
        """Download an object into memory."""
        gateway = await self._gateway()
        return await gateway.get_object(key)

    async def download(
        self,
        key: str,
        destination: Optional[Union[str, Path]] = None,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> Path:
        """
        Stream an object to a local file.

        Args:
            key: Object key
            destination: Output path (defaults to the key's last segment)
            progress_callback: Receives the number of bytes written so far

        Returns:
            Path written
        """
        output = Path(destination) if destination else Path(basename(key))
        partial = output.with_name(f"{output.name}.part")
        gateway = await self._gateway()
        written = 0
        try:
            async with aiofiles.open(partial, 'wb') as f:
                async for chunk in gateway.iter_object(key):
                    await f.write(chunk)
                    written += len(chunk)
                    if progress_callback:
                        progress_callback(written)
        except BaseException:
            # output is only replaced by a complete download
            if await aiofiles.os.path.exists(partial):
                await aiofiles.os.remove(partial)
            raise
        await aiofiles.os.replace(partial, output)
        logger.info(f"Downloaded {key} to {output} ({written} bytes)")
        return output

    def public_url(self, key: str) -> Optional[str]:
        """Public URL through the active endpoint's custom domain, if any."""
        return self._registry.require_active().public_url(key)
