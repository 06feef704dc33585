"""Module that exposes a directory on the local disk as a writable file system."""

from datetime import datetime, timedelta, timezone
import io
import os
import shutil
import stat
import tempfile
from typing import BinaryIO, IO, List, Optional

from httpdirfs.index.common import Entry, EntryKind, FileHash, HashAlgorithm, Metadata
import httpdirfs.paths as paths
from .common import FileData, ReadWriteOperations


class LocalFileSystem(ReadWriteOperations):
    """
    File system rooted at a local directory.

    This is the writable side of a published tree: the directory is typically served
    as-is by a plain HTTP server, and index documents are generated into it so that
    HttpFileSystem can browse it remotely.

    Directory listings are sorted by name so that generated index documents are stable
    for unchanged contents. File entries include a content hash unless the hash
    algorithm is NONE.
    """

    def __init__(
        self, root: str, hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    ) -> None:
        """Instantiate a file system for the given (existing) root directory."""
        self._root = os.path.abspath(root)
        self._hash_algorithm = hash_algorithm

        if not os.path.isdir(self._root):
            raise NotADirectoryError(f"not a directory: {self._root}")

    @property
    def root(self) -> str:
        """Return the absolute local path of the root directory."""
        return self._root

    def local_path(self, path: str) -> str:
        """Map a file system path to the corresponding local path."""
        relative = paths.relative(paths.normalize(path), paths.ROOT)
        return os.path.join(self._root, *relative.split(paths.SEPARATOR))

    #
    # Read operations
    #

    def stat(self, path: str) -> Optional[Entry]:
        try:
            return self._entry(paths.normalize(path))
        except FileNotFoundError:
            return None

    def list(self, path: str, recursive: bool = False) -> List[Entry]:
        path = paths.normalize(path)

        try:
            names = sorted(os.listdir(self.local_path(path)))
        except (FileNotFoundError, NotADirectoryError):
            return []

        entries = []

        for name in names:
            try:
                entry = self._entry(paths.join(path, name))
            except FileNotFoundError:
                # Removed between listing and stat
                continue

            entries.append(entry)

            if recursive and entry.is_directory:
                entries += self.list(entry.name, recursive=True)

        return entries

    #
    # Direct read operations
    #

    def open(self, path: str, mode: str = "rb") -> IO[bytes]:
        if mode not in ("r", "rb"):
            raise io.UnsupportedOperation(f"unsupported file mode '{mode}'")

        return open(self.local_path(path), "rb")

    def read_file(self, path: str, fp: BinaryIO) -> None:
        with self.open(path) as f:
            shutil.copyfileobj(f, fp)

    #
    # Write operations
    #

    def write_file(self, path: str, data: FileData, overwrite: bool = True) -> Entry:
        path = paths.normalize(path)
        local_path = self.local_path(path)

        if not overwrite and os.path.exists(local_path):
            raise FileExistsError(f"file already exists: {path}")

        directory = os.path.dirname(local_path)
        os.makedirs(directory, exist_ok=True)

        # Write to a temporary file first so that readers never see partial contents
        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")

        try:
            with os.fdopen(fd, "wb") as f:
                if isinstance(data, bytes):
                    f.write(data)
                else:
                    shutil.copyfileobj(data, f)

            os.replace(temp_path, local_path)
        except BaseException:
            os.unlink(temp_path)
            raise

        return self._entry(path)

    def move_file(self, source: str, destination: str, overwrite: bool = False) -> Entry:
        source_path = self.local_path(source)
        destination_path = self.local_path(destination)

        if not os.path.isfile(source_path):
            raise FileNotFoundError(f"no such file: {source}")

        if not overwrite and os.path.exists(destination_path):
            raise FileExistsError(f"file already exists: {destination}")

        os.makedirs(os.path.dirname(destination_path), exist_ok=True)
        os.replace(source_path, destination_path)

        return self._entry(paths.normalize(destination))

    def delete_file(self, path: str) -> None:
        os.unlink(self.local_path(path))

    def create_directory(self, path: str) -> Entry:
        os.makedirs(self.local_path(path), exist_ok=True)
        return self._entry(paths.normalize(path))

    def move_directory(self, source: str, destination: str) -> Entry:
        source_path = self.local_path(source)
        destination_path = self.local_path(destination)

        if not os.path.isdir(source_path):
            raise NotADirectoryError(f"no such directory: {source}")

        if os.path.exists(destination_path):
            raise FileExistsError(f"directory already exists: {destination}")

        os.makedirs(os.path.dirname(destination_path), exist_ok=True)
        os.rename(source_path, destination_path)

        return self._entry(paths.normalize(destination))

    def delete_directory(self, path: str, recursive: bool = False) -> None:
        if paths.normalize(path) == paths.ROOT:
            raise PermissionError("refusing to delete the root directory")

        if recursive:
            shutil.rmtree(self.local_path(path))
        else:
            os.rmdir(self.local_path(path))

    def update_metadata(self, path: str, metadata: Metadata) -> Entry:
        """
        Apply metadata changes to an existing file or directory.

        Only the modification time can be changed. POSIX file systems offer no way to
        set the creation time, so it is ignored.
        """
        local_path = self.local_path(path)

        if metadata.modify_time is not None:
            st = os.stat(local_path)
            elapsed = metadata.modify_time - _EPOCH
            mtime_ns = elapsed // timedelta(microseconds=1) * 1000
            os.utime(local_path, ns=(st.st_atime_ns, mtime_ns))

        return self._entry(paths.normalize(path))

    #
    # Helpers
    #

    def _entry(self, path: str) -> Entry:
        """Describe the entry at the given normalized path."""
        local_path = self.local_path(path)
        st = os.stat(local_path)

        # st_birthtime is only available on some platforms
        created = getattr(st, "st_birthtime", st.st_ctime)

        if stat.S_ISDIR(st.st_mode):
            return Entry(
                kind=EntryKind.DIRECTORY,
                name=path,
                creation_time=_timestamp(created),
                modify_time=_timestamp(st.st_mtime),
            )

        return Entry(
            kind=EntryKind.FILE,
            name=path,
            creation_time=_timestamp(created),
            modify_time=_timestamp(st.st_mtime),
            length=st.st_size,
            hash=self._hash(local_path),
        )

    def _hash(self, local_path: str) -> Optional[FileHash]:
        if self._hash_algorithm is HashAlgorithm.NONE:
            return None

        with open(local_path, "rb") as f:
            return FileHash.compute(f.read(), self._hash_algorithm)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)
