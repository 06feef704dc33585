"""
Capability interfaces shared by all file system implementations.

A file system advertises what it can do by the interfaces it inherits:

* ReadOperations - resolve single entries and list directories.
* DirectReadOperations - open a file as a readable stream.
* WriteOperations - mutate files, directories and their metadata.

The Async* variants expose the same operations as coroutines. Behaviors like keeping
index documents up to date are implemented as wrappers over any implementation of the
relevant interface.

Paths are always absolute and '/'-separated (see httpdirfs.paths).
"""

from typing import Awaitable, BinaryIO, IO, List, Optional, Union

from httpdirfs.index.common import Entry, Metadata

# Contents accepted by write_file(): raw bytes or a readable binary file object
FileData = Union[bytes, BinaryIO]


class ReadOperations:
    """Base class for file systems that can describe their entries."""

    def stat(self, path: str) -> Optional[Entry]:
        """Return the entry at the given path, or None if it does not exist."""
        raise NotImplementedError()

    def list(self, path: str, recursive: bool = False) -> List[Entry]:
        """
        List the entries within a directory.

        Entries carry their full path as name. If recursive is set then all descendants
        are listed. A directory that does not exist yields an empty list.
        """
        raise NotImplementedError()


class DirectReadOperations:
    """Base class for file systems that can stream file contents."""

    def open(self, path: str, mode: str = "rb") -> IO[bytes]:
        """
        Open a file for reading.

        Only binary read access ("r"/"rb") is guaranteed to be supported. Other modes
        raise io.UnsupportedOperation unless an implementation explicitly supports them.
        """
        raise NotImplementedError()

    def read_file(self, path: str, fp: BinaryIO) -> None:
        """Copy the full contents of a file into the given binary file object."""
        raise NotImplementedError()


class WriteOperations:
    """Base class for file systems that can be modified."""

    def write_file(self, path: str, data: FileData, overwrite: bool = True) -> Entry:
        """Create or replace a file with the given contents."""
        raise NotImplementedError()

    def move_file(self, source: str, destination: str, overwrite: bool = False) -> Entry:
        """Move a file to a new path."""
        raise NotImplementedError()

    def delete_file(self, path: str) -> None:
        """Delete a file."""
        raise NotImplementedError()

    def create_directory(self, path: str) -> Entry:
        """Create a directory (and any missing parents)."""
        raise NotImplementedError()

    def move_directory(self, source: str, destination: str) -> Entry:
        """Move a directory with all of its contents to a new path."""
        raise NotImplementedError()

    def delete_directory(self, path: str, recursive: bool = False) -> None:
        """Delete a directory, which must be empty unless recursive is set."""
        raise NotImplementedError()

    def update_metadata(self, path: str, metadata: Metadata) -> Entry:
        """Apply metadata changes to an existing file or directory."""
        raise NotImplementedError()


class ReadWriteOperations(ReadOperations, DirectReadOperations, WriteOperations):
    """Base class for file systems that support every synchronous capability."""


class AsyncReadOperations:
    """Coroutine variant of ReadOperations."""

    def stat(self, path: str) -> Awaitable[Optional[Entry]]:
        raise NotImplementedError()

    def list(self, path: str, recursive: bool = False) -> Awaitable[List[Entry]]:
        raise NotImplementedError()


class AsyncDirectReadOperations:
    """Coroutine variant of DirectReadOperations."""

    def open(self, path: str, mode: str = "rb") -> Awaitable:
        raise NotImplementedError()

    def read_file(self, path: str, fp: BinaryIO) -> Awaitable[None]:
        raise NotImplementedError()


class AsyncWriteOperations:
    """Coroutine variant of WriteOperations."""

    def write_file(
        self, path: str, data: FileData, overwrite: bool = True
    ) -> Awaitable[Entry]:
        raise NotImplementedError()

    def move_file(
        self, source: str, destination: str, overwrite: bool = False
    ) -> Awaitable[Entry]:
        raise NotImplementedError()

    def delete_file(self, path: str) -> Awaitable[None]:
        raise NotImplementedError()

    def create_directory(self, path: str) -> Awaitable[Entry]:
        raise NotImplementedError()

    def move_directory(self, source: str, destination: str) -> Awaitable[Entry]:
        raise NotImplementedError()

    def delete_directory(self, path: str, recursive: bool = False) -> Awaitable[None]:
        raise NotImplementedError()

    def update_metadata(self, path: str, metadata: Metadata) -> Awaitable[Entry]:
        raise NotImplementedError()
