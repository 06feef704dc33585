"""
Module that implements a read-only file system on top of plain HTTP GET requests.

HTTP has no notion of directory listings, so directories are described by index
documents that are published alongside the files (see httpdirfs.index). Resolving an
entry or listing a directory fetches and parses the relevant document, and reading a
file simply fetches its path.

Every file system instance owns a single HTTP client and allows only one request to be
in flight at a time. Concurrent callers are serialized by a lock. Streams returned by
open() keep holding that lock until they are closed, so they must always be closed.
"""

from __future__ import annotations

import dataclasses
import errno
import io
import logging
import os
import shutil
import threading
import time
from typing import BinaryIO, Callable, Dict, IO, Iterator, List, Optional
from urllib.parse import quote
import uuid

import httpx

from httpdirfs.config import HttpConfig
from httpdirfs.constants import CACHE_DEFEAT_PARAM
from httpdirfs.index.codec import parse_document
from httpdirfs.index.common import Entry, EntryKind
from httpdirfs.logger import log
import httpdirfs.paths as paths
from .common import DirectReadOperations, ReadOperations

# Modes accepted by open(), anything else would require write access
READ_MODES = ("r", "rb")


class HttpFileSystemBase:
    """Request and document handling shared by the sync and async file systems."""

    def __init__(
        self, address: Optional[str] = None, config: Optional[HttpConfig] = None
    ) -> None:
        """
        Instantiate for the tree published at the given base address.

        The address defaults to the one in the config if it is not specified.
        """
        self._config = config or HttpConfig()

        address = address or self._config.address

        if not address:
            raise ValueError("address cannot be empty")

        self._address = address

    @property
    def address(self) -> str:
        """Return the base address of the remote tree."""
        return self._address

    @property
    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._config.timeout / 1000)

    def _url(self, path: str) -> str:
        """Determine the URL of a path in the remote tree."""
        return paths.join(self._address, quote(paths.normalize(path)))

    def _params(self) -> Dict[str, str]:
        """Determine the query parameters to send with a request."""
        if self._config.prevent_cache:
            return {CACHE_DEFEAT_PARAM: uuid.uuid4().hex}
        else:
            return {}

    def _document_path(self, directory: str, recursive: bool) -> str:
        if recursive:
            name = self._config.recursive_document
        else:
            name = self._config.directory_document

        return paths.join(paths.normalize(directory), name)

    def _decode(self, response: httpx.Response) -> str:
        return response.content.decode(self._config.encoding)

    @staticmethod
    def _parse(directory: str, text: str) -> List[Entry]:
        """Parse a document and resolve the names of its entries to full paths."""
        return [
            dataclasses.replace(e, name=paths.normalize(paths.join(directory, e.name)))
            for e in parse_document(text)
        ]

    @staticmethod
    def _root_entry() -> Entry:
        return Entry(kind=EntryKind.DIRECTORY, name=paths.ROOT)

    @staticmethod
    def _log_request(request: httpx.Request, status: int, t_call: float) -> None:
        # Explicit check before logging to avoid formatting the URL needlessly
        if log.isEnabledFor(logging.DEBUG):
            t_millis = round((time.time() - t_call) * 1000)
            log.debug(f"http::GET {request.url} ({status}) - {t_millis} ms")

    @staticmethod
    def _not_found(path: str) -> FileNotFoundError:
        return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)

    @staticmethod
    def _check_mode(mode: str) -> None:
        if mode not in READ_MODES:
            raise io.UnsupportedOperation(f"only read access is supported, not '{mode}'")


class HttpFileSystem(HttpFileSystemBase, ReadOperations, DirectReadOperations):
    """
    Read-only file system for a tree published over HTTP.

    Example:
    ```
    with HttpFileSystem("https://example.com/files") as fs:
        for entry in fs.list("/docs"):
            print(entry.name, entry.length)

        with fs.open("/docs/report.txt") as f:
            data = f.read()
    ```

    A transport can be specified to replace the network (e.g. httpx.MockTransport).
    """

    def __init__(
        self,
        address: Optional[str] = None,
        config: Optional[HttpConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Instantiate with its own HTTP client for the given base address."""
        super().__init__(address, config)

        self._client = httpx.Client(timeout=self._timeout, transport=transport)
        self._lock = threading.Lock()

    def __enter__(self) -> HttpFileSystem:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def stat(self, path: str) -> Optional[Entry]:
        """
        Resolve a single entry through the index document of its parent directory.

        The root always exists and is resolved without a request.
        """
        path = paths.normalize(path)
        parent = paths.parent(path)

        if parent is None:
            return self._root_entry()

        text = self._fetch_document(self._document_path(parent, recursive=False))

        if text is None:
            return None

        return next((e for e in self._parse(parent, text) if e.name == path), None)

    def list(self, path: str, recursive: bool = False) -> List[Entry]:
        """
        List a directory through its index document.

        A recursive listing of the root is answered by the single recursive document.
        Other recursive listings walk the flat documents of every subdirectory.
        """
        directory = paths.normalize(path)
        use_recursive_document = recursive and directory == paths.ROOT

        text = self._fetch_document(
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
                descendants += self.list(entry.name, recursive=True)

        return descendants

    def open(self, path: str, mode: str = "rb") -> IO[bytes]:
        """
        Open a stream of the contents of a remote file.

        The stream holds the request lock of this file system until it is closed, which
        means that no other operations can proceed until then.
        """
        self._check_mode(mode)

        self._lock.acquire()

        try:
            response = self._request(path, stream=True)

            if response.is_error:
                response.close()

                if response.status_code == httpx.codes.NOT_FOUND:
                    raise self._not_found(path)

                response.raise_for_status()

            return io.BufferedReader(ResponseStream(response, self._lock.release))
        except BaseException:
            self._lock.release()
            raise

    def read_file(self, path: str, fp: BinaryIO) -> None:
        """Copy the full contents of a remote file into a binary file object."""
        with self.open(path) as f:
            shutil.copyfileobj(f, fp)

    def _fetch_document(self, path: str) -> Optional[str]:
        """Retrieve the text of an index document, or None if it doesn't exist."""
        with self._lock:
            response = self._request(path)

            if response.status_code == httpx.codes.NOT_FOUND:
                log.debug(f"no index document at {path}")
                return None

            response.raise_for_status()

            return self._decode(response)

    def _request(self, path: str, stream: bool = False) -> httpx.Response:
        """Send a GET request for a remote path. The caller must hold the lock."""
        request = self._client.build_request(
            "GET", self._url(path), params=self._params()
        )

        t_call = time.time()

        try:
            response = self._client.send(request, stream=stream)
        except httpx.TimeoutException as e:
            raise TimeoutError(f"request for {request.url} timed out") from e

        self._log_request(request, response.status_code, t_call)

        return response


class ResponseStream(io.RawIOBase):
    """
    Readable raw stream over the body of a streamed HTTP response.

    The close callback is invoked exactly once, when the stream is closed (explicitly
    or when it is garbage collected).
    """

    def __init__(self, response: httpx.Response, on_close: Callable[[], None]) -> None:
        """Wrap a response whose body has not been read yet."""
        super().__init__()

        self._response = response
        self._on_close: Optional[Callable[[], None]] = on_close

        self._chunks: Iterator[bytes] = response.iter_bytes()
        self._buffer = b""

    def readable(self) -> bool:
        return True

    def readinto(self, b: bytearray) -> int:  # type: ignore[override]
        while not self._buffer:
            try:
                self._buffer = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.TimeoutException as e:
                raise TimeoutError(f"reading {self._response.url} timed out") from e

        size = min(len(b), len(self._buffer))

        b[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]

        return size

    def close(self) -> None:
        if self.closed:
            return

        try:
            self._response.close()
        finally:
            super().close()

            on_close, self._on_close = self._on_close, None

            if on_close is not None:
                on_close()
