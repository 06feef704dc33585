"""Data structures describing the entries listed by index documents."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import hashlib
from typing import Optional


class EntryKind(Enum):
    """Kind of a file system entry, valued by its index document discriminator."""

    FILE = "F"
    DIRECTORY = "D"

    @staticmethod
    def parse(discriminator: str) -> Optional[EntryKind]:
        """Parse a discriminator case-insensitively, None if it is not recognized."""
        try:
            return EntryKind(discriminator.upper())
        except ValueError:
            return None


class HashAlgorithm(Enum):
    """Supported content hash algorithms, valued by their hashlib names."""

    NONE = "none"
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @staticmethod
    def parse(identifier: str) -> Optional[HashAlgorithm]:
        """Look up an algorithm by its identifier, ignoring case."""
        return HashAlgorithm.__members__.get(identifier.upper())


@dataclass(frozen=True)
class FileHash:
    """Content hash of a file as an algorithm and its hex-encoded value."""

    algorithm: HashAlgorithm
    value: str

    def __post_init__(self) -> None:
        if _has_separator(self.value):
            raise ValueError(f"hash value contains a tab or newline: {self.value!r}")

    @staticmethod
    def compute(data: bytes, algorithm: HashAlgorithm) -> Optional[FileHash]:
        """Hash the given data, or return None if the algorithm is NONE."""
        if algorithm is HashAlgorithm.NONE:
            return None

        return FileHash(algorithm, hashlib.new(algorithm.value, data).hexdigest())


@dataclass(frozen=True)
class Entry:
    """
    Description of a single file or directory.

    Within an index document the name is either the bare name of a child (flat
    documents) or a path relative to the indexed root (recursive documents). Entries
    returned by file system operations carry the full path of the entry instead.

    Timestamps are timezone aware. Naive timestamps are interpreted as UTC.
    """

    kind: EntryKind
    name: str
    creation_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    length: Optional[int] = None
    hash: Optional[FileHash] = None

    def __post_init__(self) -> None:
        if _has_separator(self.name):
            raise ValueError(f"entry name contains a tab or newline: {self.name!r}")

        if self.length is not None and self.length < 0:
            raise ValueError(f"negative entry length {self.length}")

        # Frozen dataclass, so normalized values have to be set through object
        object.__setattr__(self, "creation_time", _as_utc(self.creation_time))
        object.__setattr__(self, "modify_time", _as_utc(self.modify_time))

    @property
    def is_directory(self) -> bool:
        """Return whether the entry describes a directory."""
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        """Return whether the entry describes a file."""
        return self.kind is EntryKind.FILE


@dataclass(frozen=True)
class Metadata:
    """Metadata changes to apply to an existing entry. None leaves a value as is."""

    creation_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "creation_time", _as_utc(self.creation_time))
        object.__setattr__(self, "modify_time", _as_utc(self.modify_time))


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    elif value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    else:
        return value.astimezone(timezone.utc)


def _has_separator(value: str) -> bool:
    """Return whether a field value would break up an index document line."""
    return any(c in value for c in "\t\r\n")
