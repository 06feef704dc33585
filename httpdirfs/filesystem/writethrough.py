"""
Module that keeps index documents up to date while modifying a file system.

Published trees are usually modified through their writable backend (like a local
directory that is served over HTTP). Wrapping that backend in a WriteThroughFileSystem
rebuilds the flat index document of every directory whose direct contents changed
after each successful modification, so that remote readers observe the change.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, BinaryIO, Callable, IO, List, Optional, TypeVar

from httpdirfs.index.common import Entry, Metadata
from httpdirfs.index.generator import IndexGenerator
from httpdirfs.logger import log
import httpdirfs.paths as paths
from .common import (
    AsyncDirectReadOperations,
    AsyncReadOperations,
    AsyncWriteOperations,
    FileData,
    ReadWriteOperations,
)

T = TypeVar("T")


class WriteThroughFileSystem(ReadWriteOperations):
    """
    Wrapper of a writable file system that regenerates index documents on changes.

    Regeneration happens synchronously before a modification returns, but it is only
    done on a best-effort basis. A failure to regenerate is logged and never undoes or
    fails the modification itself, which means that an index document may be stale
    until the next successful regeneration.

    Only flat documents are regenerated by default. A recursive document of the root
    would otherwise remain stale after any modification, so it can be refreshed along
    with them by enabling refresh_recursive. This walks the entire tree on every
    modification.

    Reads are passed straight through to the wrapped file system.
    """

    def __init__(
        self,
        backend: ReadWriteOperations,
        generator: Optional[IndexGenerator] = None,
        refresh_recursive: bool = False,
    ) -> None:
        """Wrap a backend, by default generating documents with default names."""
        self._backend = backend
        self._generator = generator or IndexGenerator(backend)
        self._refresh_recursive = refresh_recursive

    @property
    def backend(self) -> ReadWriteOperations:
        """Return the wrapped file system."""
        return self._backend

    #
    # Read operations
    #

    def stat(self, path: str) -> Optional[Entry]:
        return self._backend.stat(path)

    def list(self, path: str, recursive: bool = False) -> List[Entry]:
        return self._backend.list(path, recursive)

    def open(self, path: str, mode: str = "rb") -> IO[bytes]:
        return self._backend.open(path, mode)

    def read_file(self, path: str, fp: BinaryIO) -> None:
        self._backend.read_file(path, fp)

    #
    # Write operations
    #

    def write_file(self, path: str, data: FileData, overwrite: bool = True) -> Entry:
        directories = self._parents(path)
        entry = self._backend.write_file(path, data, overwrite)
        self._regenerate(*directories)
        return entry

    def move_file(self, source: str, destination: str, overwrite: bool = False) -> Entry:
        directories = [paths.parent(source), *self._parents(destination)]
        entry = self._backend.move_file(source, destination, overwrite)
        self._regenerate(*directories)
        return entry

    def delete_file(self, path: str) -> None:
        self._backend.delete_file(path)
        self._regenerate(paths.parent(path))

    def create_directory(self, path: str) -> Entry:
        directories = self._parents(path)
        entry = self._backend.create_directory(path)
        self._regenerate(*directories)
        return entry

    def move_directory(self, source: str, destination: str) -> Entry:
        directories = [paths.parent(source), *self._parents(destination)]
        entry = self._backend.move_directory(source, destination)
        self._regenerate(*directories)
        return entry

    def delete_directory(self, path: str, recursive: bool = False) -> None:
        self._backend.delete_directory(path, recursive)
        self._regenerate(paths.parent(path))

    def update_metadata(self, path: str, metadata: Metadata) -> Entry:
        entry = self._backend.update_metadata(path, metadata)
        self._regenerate(paths.parent(path))
        return entry

    def _parents(self, path: str) -> List[Optional[str]]:
        """
        Determine the directories whose listing changes when an entry is created.

        The backend may create missing ancestors of a new entry implicitly, so this is
        the parent along with every ancestor up to and including the closest one that
        already exists. Must be called before the modification.
        """
        directories: List[Optional[str]] = []
        directory = paths.parent(path)

        while directory is not None:
            directories.append(directory)

            if self._backend.stat(directory) is not None:
                break

            directory = paths.parent(directory)

        return directories

    def _regenerate(self, *directories: Optional[str]) -> None:
        """Regenerate the flat documents of the given directories (best-effort)."""
        for directory in dict.fromkeys(directories):
            # The root has no parent whose listing could have changed
            if directory is None:
                continue

            try:
                self._generator.regenerate(directory)
            except Exception as e:
                log.error(f"failed to regenerate index of {directory}: {e}")

        if self._refresh_recursive:
            try:
                self._generator.create_recursive_index(paths.ROOT)
            except Exception as e:
                log.error(f"failed to regenerate recursive index: {e}")


class AsyncWriteThroughFileSystem(
    AsyncReadOperations, AsyncDirectReadOperations, AsyncWriteOperations
):
    """
    Coroutine variant of WriteThroughFileSystem.

    Each operation, including the regeneration that follows a modification, runs in the
    default executor of the event loop so that callers are never blocked.

    The wrapped backend must be a synchronous ReadWriteOperations implementation, since
    index generation lists and writes through it from the executor threads. Async
    backends are rejected with a TypeError.
    """

    def __init__(
        self,
        backend: ReadWriteOperations,
        generator: Optional[IndexGenerator] = None,
        refresh_recursive: bool = False,
    ) -> None:
        """Wrap a backend, see WriteThroughFileSystem."""
        if not isinstance(backend, ReadWriteOperations):
            raise TypeError(
                "expected a synchronous ReadWriteOperations backend, "
                f"not {type(backend).__name__}"
            )

        self._sync = WriteThroughFileSystem(backend, generator, refresh_recursive)

    async def stat(self, path: str) -> Optional[Entry]:
        return await self._run(self._sync.stat, path)

    async def list(self, path: str, recursive: bool = False) -> List[Entry]:
        return await self._run(self._sync.list, path, recursive)

    async def open(self, path: str, mode: str = "rb") -> IO[bytes]:
        return await self._run(self._sync.open, path, mode)

    async def read_file(self, path: str, fp: BinaryIO) -> None:
        await self._run(self._sync.read_file, path, fp)

    async def write_file(
        self, path: str, data: FileData, overwrite: bool = True
    ) -> Entry:
        return await self._run(self._sync.write_file, path, data, overwrite)

    async def move_file(
        self, source: str, destination: str, overwrite: bool = False
    ) -> Entry:
        return await self._run(self._sync.move_file, source, destination, overwrite)

    async def delete_file(self, path: str) -> None:
        await self._run(self._sync.delete_file, path)

    async def create_directory(self, path: str) -> Entry:
        return await self._run(self._sync.create_directory, path)

    async def move_directory(self, source: str, destination: str) -> Entry:
        return await self._run(self._sync.move_directory, source, destination)

    async def delete_directory(self, path: str, recursive: bool = False) -> None:
        await self._run(self._sync.delete_directory, path, recursive)

    async def update_metadata(self, path: str, metadata: Metadata) -> Entry:
        return await self._run(self._sync.update_metadata, path, metadata)

    @staticmethod
    async def _run(fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))
