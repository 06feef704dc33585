"""
Modules that describe directory trees with generated index documents.

A plain HTTP server can serve files, but it cannot tell a client what files exist. This
is solved by publishing small text documents next to the files that enumerate the
contents of a directory, one entry per line. The format is trivial to generate and to
parse, and damaged lines only cost the entries they describe.

There are two kinds of documents:

* A flat document (".dirls") lists the direct children of the directory it is placed
in. Every directory in a published tree has one.
* A recursive document (".dirrls") lists every descendant of the directory it is placed
in, which allows a client to retrieve a complete tree with a single request.

The documents are disposable snapshots: they are rebuilt from scratch whenever they are
generated and are never patched incrementally.
"""

from .codec import decode_entry, encode_entry, parse_document, render_document
from .common import Entry, EntryKind, FileHash, HashAlgorithm, Metadata
from .generator import IndexGenerator

__all__ = [
    "decode_entry",
    "encode_entry",
    "parse_document",
    "render_document",
    "Entry",
    "EntryKind",
    "FileHash",
    "HashAlgorithm",
    "Metadata",
    "IndexGenerator",
]
