"""Module that generates the index documents of a directory tree."""

from __future__ import annotations

from contextlib import contextmanager
import dataclasses
import os
import threading
from typing import Iterable, Iterator, List, Optional, Set, TYPE_CHECKING

import fasteners

from httpdirfs.constants import DEFAULT_DIRECTORY_DOCUMENT, DEFAULT_RECURSIVE_DOCUMENT
from httpdirfs.logger import log, summarize
import httpdirfs.paths as paths
from .codec import render_document
from .common import Entry

if TYPE_CHECKING:
    from httpdirfs.filesystem.common import ReadWriteOperations


class IndexGenerator:
    """
    Class that writes index documents into a writable file system.

    HTTP offers no way to list a directory, so every directory that should be
    browsable carries a generated document that enumerates its contents. There are two
    kinds of documents:

    * Flat documents list the direct children of a single directory by name. Every
    directory gets its own.
    * A recursive document lists every descendant of a directory by its path relative
    to that directory, which allows listing a whole tree with a single request.

    Generation always rebuilds a document from scratch and replaces the previous one
    entirely. Changes made to the tree while it is being walked may or may not be
    reflected, and the last completed write wins.

    If a lock path is specified then every generation run holds an inter-process lock
    on that file, so that separate processes regenerating documents for the same tree
    never interleave their writes.
    """

    def __init__(
        self,
        backend: ReadWriteOperations,
        directory_document: str = DEFAULT_DIRECTORY_DOCUMENT,
        recursive_document: str = DEFAULT_RECURSIVE_DOCUMENT,
        lock_path: Optional[str] = None,
    ) -> None:
        """Instantiate a generator that lists and writes through the given backend."""
        self._backend = backend
        self._directory_document = directory_document
        self._recursive_document = recursive_document
        self._lock_path = lock_path

        # fasteners only excludes other processes, not other threads of this one
        self._thread_lock = threading.Lock()

    @property
    def reserved_names(self) -> Set[str]:
        """Return the names of the documents that are never listed themselves."""
        return {self._directory_document, self._recursive_document}

    def create_directory_index(self, directory: str, recursive: bool = True) -> None:
        """
        Write a flat document for the directory and, if recursive, all subdirectories.

        Each document contains exactly the direct children of its directory.
        """
        with self._exclusive():
            stack = [paths.normalize(directory)]

            while len(stack) > 0:
                current = stack.pop()
                entries = self._children(current)

                if recursive:
                    stack += [e.name for e in entries if e.is_directory]

                document = render_document(
                    dataclasses.replace(e, name=paths.basename(e.name)) for e in entries
                )

                self._write(paths.join(current, self._directory_document), document)

    def regenerate(self, directory: str) -> None:
        """Rebuild the flat document of only the specified directory."""
        self.create_directory_index(directory, recursive=False)

    def create_recursive_index(
        self, directory: str, ignored_paths: Optional[Iterable[str]] = None
    ) -> None:
        """
        Write a single recursive document listing all descendants of the directory.

        Ignored paths are excluded along with everything below them. They may be
        specified as full paths or relative to the indexed directory.
        """
        root = paths.normalize(directory)
        ignored = {
            paths.normalize(p if p.startswith(paths.SEPARATOR) else paths.join(root, p))
            for p in ignored_paths or []
        }

        with self._exclusive():
            stack = [root]
            entries: List[Entry] = []

            while len(stack) > 0:
                current = stack.pop()

                for entry in self._children(current):
                    if entry.name in ignored:
                        continue

                    if entry.is_directory:
                        stack.append(entry.name)

                    entries.append(
                        dataclasses.replace(
                            entry, name=paths.relative(entry.name, root)
                        )
                    )

            document = render_document(entries)
            self._write(paths.join(root, self._recursive_document), document)

    def _children(self, directory: str) -> List[Entry]:
        """List the direct children of a directory apart from index documents."""
        return [
            entry
            for entry in self._backend.list(directory)
            if paths.basename(entry.name) not in self.reserved_names
        ]

    def _write(self, path: str, document: str) -> None:
        log.debug(f"writing index document {path}: {summarize(document)}")
        self._backend.write_file(path, document.encode("utf-8"), overwrite=True)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the locks that serialize generation runs."""
        with self._thread_lock:
            if self._lock_path is None:
                yield
                return

            lock_directory = os.path.dirname(self._lock_path)

            if lock_directory:
                os.makedirs(lock_directory, exist_ok=True)

            with fasteners.InterProcessLock(self._lock_path):
                yield
