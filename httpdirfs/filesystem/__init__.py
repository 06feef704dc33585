"""
Modules that implement file systems on top of published directory trees.

The HTTP file systems expose a remote tree as a read-only file system by fetching the
index documents that describe it. All requests of a single instance are serialized, so
that it never has more than one request in flight.

Trees are modified through a separate writable file system, like LocalFileSystem for a
directory that is served by a web server. Wrapping it in a WriteThroughFileSystem keeps
the index documents consistent with every modification.
"""

from .aio import AsyncHttpFileSystem
from .common import (
    AsyncDirectReadOperations,
    AsyncReadOperations,
    AsyncWriteOperations,
    DirectReadOperations,
    ReadOperations,
    ReadWriteOperations,
    WriteOperations,
)
from .http import HttpFileSystem
from .local import LocalFileSystem
from .writethrough import AsyncWriteThroughFileSystem, WriteThroughFileSystem

__all__ = [
    "AsyncDirectReadOperations",
    "AsyncHttpFileSystem",
    "AsyncReadOperations",
    "AsyncWriteOperations",
    "AsyncWriteThroughFileSystem",
    "DirectReadOperations",
    "HttpFileSystem",
    "LocalFileSystem",
    "ReadOperations",
    "ReadWriteOperations",
    "WriteOperations",
    "WriteThroughFileSystem",
]
