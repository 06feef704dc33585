"""Module with the asyncio variant of the HTTP file system."""

from __future__ import annotations

import asyncio
import time
from typing import AsyncIterator, BinaryIO, Callable, List, Optional

import httpx

from httpdirfs.config import HttpConfig
from httpdirfs.index.common import Entry
from httpdirfs.logger import log
import httpdirfs.paths as paths
from .common import AsyncDirectReadOperations, AsyncReadOperations
from .http import HttpFileSystemBase


class AsyncHttpFileSystem(
    HttpFileSystemBase, AsyncReadOperations, AsyncDirectReadOperations
):
    """
    Coroutine variant of HttpFileSystem.

    Callers are suspended rather than blocked while waiting for the request lock or a
    response, but just like the synchronous variant only a single request is in flight
    per instance at any time.

    The file system should be created within the event loop that is going to use it.
    """

    def __init__(
        self,
        address: Optional[str] = None,
        config: Optional[HttpConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Instantiate with its own HTTP client for the given base address."""
        super().__init__(address, config)

        self._client = httpx.AsyncClient(timeout=self._timeout, transport=transport)
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> AsyncHttpFileSystem:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def stat(self, path: str) -> Optional[Entry]:
        """Resolve a single entry through the index document of its parent."""
        path = paths.normalize(path)
        parent = paths.parent(path)

        if parent is None:
            return self._root_entry()

        text = await self._fetch_document(self._document_path(parent, recursive=False))

        if text is None:
            return None

        return next((e for e in self._parse(parent, text) if e.name == path), None)

    async def list(self, path: str, recursive: bool = False) -> List[Entry]:
        """List a directory through its index document (see HttpFileSystem.list)."""
        directory = paths.normalize(path)
        use_recursive_document = recursive and directory == paths.ROOT

        text = await self._fetch_document(
            self._document_path(directory, recursive=use_recursive_document)
        )

        if text is None:
            return []

        entries = self._parse(directory, text)

        if not recursive or use_recursive_document:
            return entries

        descendants: List[Entry] = []

        for entry in entries:
            descendants.append(entry)

            if entry.is_directory:
                descendants += await self.list(entry.name, recursive=True)

        return descendants

    async def open(self, path: str, mode: str = "rb") -> AsyncResponseStream:
        """
        Open a stream of the contents of a remote file.

        The stream holds the request lock until it is closed with aclose() or by
        leaving its async context manager.
        """
        self._check_mode(mode)

        await self._lock.acquire()

        try:
            response = await self._request(path, stream=True)

            if response.is_error:
                await response.aclose()

                if response.status_code == httpx.codes.NOT_FOUND:
                    raise self._not_found(path)

                response.raise_for_status()

            return AsyncResponseStream(response, self._lock.release)
        except BaseException:
            self._lock.release()
            raise

    async def read_file(self, path: str, fp: BinaryIO) -> None:
        """Copy the full contents of a remote file into a binary file object."""
        async with await self.open(path) as stream:
            async for chunk in stream:
                fp.write(chunk)

    async def _fetch_document(self, path: str) -> Optional[str]:
        """Retrieve the text of an index document, or None if it doesn't exist."""
        async with self._lock:
            response = await self._request(path)

            if response.status_code == httpx.codes.NOT_FOUND:
                log.debug(f"no index document at {path}")
                return None

            response.raise_for_status()

            return self._decode(response)

    async def _request(self, path: str, stream: bool = False) -> httpx.Response:
        """Send a GET request for a remote path. The caller must hold the lock."""
        request = self._client.build_request(
            "GET", self._url(path), params=self._params()
        )

        t_call = time.time()

        try:
            response = await self._client.send(request, stream=stream)
        except httpx.TimeoutException as e:
            raise TimeoutError(f"request for {request.url} timed out") from e

        self._log_request(request, response.status_code, t_call)

        return response


class AsyncResponseStream:
    """Readable stream over the body of a streamed HTTP response, for coroutines."""

    def __init__(self, response: httpx.Response, on_close: Callable[[], None]) -> None:
        """Wrap a response whose body has not been read yet."""
        self._response = response
        self._on_close: Optional[Callable[[], None]] = on_close

        self._chunks = response.aiter_bytes()
        self._buffer = b""

    @property
    def closed(self) -> bool:
        """Return whether the stream has been closed."""
        return self._on_close is None

    async def __aenter__(self) -> AsyncResponseStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iter_chunks()

    async def read(self, size: int = -1) -> bytes:
        """Read up to size bytes, or everything that is left if size is negative."""
        while size < 0 or len(self._buffer) < size:
            chunk = await self._next_chunk()

            if chunk is None:
                break

            self._buffer += chunk

        if size < 0:
            data, self._buffer = self._buffer, b""
        else:
            data, self._buffer = self._buffer[:size], self._buffer[size:]

        return data

    async def aclose(self) -> None:
        """Close the response and invoke the close callback (only once)."""
        on_close, self._on_close = self._on_close, None

        if on_close is None:
            return

        try:
            await self._response.aclose()
        finally:
            on_close()

    async def _iter_chunks(self) -> AsyncIterator[bytes]:
        if self._buffer:
            data, self._buffer = self._buffer, b""
            yield data

        while True:
            chunk = await self._next_chunk()

            if chunk is None:
                return

            yield chunk

    async def _next_chunk(self) -> Optional[bytes]:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None
        except httpx.TimeoutException as e:
            raise TimeoutError(f"reading {self._response.url} timed out") from e
