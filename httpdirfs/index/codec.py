"""
Module that encodes and decodes index documents.

An index document is UTF-8 text with one entry per line:

    <kind>\t<created>\t<modified>\t<length>\t<hash algorithm>\t<hash value>\t<name>

Absent fields are written as "-". Lines that are not structurally valid are skipped when
decoding, and fields that fail to parse are left absent.
"""

from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from httpdirfs.constants import EMPTY_FIELD
from .common import Entry, EntryKind, FileHash, HashAlgorithm

FIELD_COUNT = 7


def encode_entry(entry: Entry) -> str:
    """Encode an entry as a single index document line (without line terminator)."""
    if entry.hash is not None and entry.hash.algorithm is not HashAlgorithm.NONE:
        hash_algorithm = entry.hash.algorithm.name
        hash_value = entry.hash.value
    else:
        hash_algorithm = hash_value = EMPTY_FIELD

    fields = [
        entry.kind.value,
        _format_time(entry.creation_time),
        _format_time(entry.modify_time),
        str(entry.length) if entry.length is not None else EMPTY_FIELD,
        hash_algorithm,
        hash_value,
        entry.name,
    ]

    return "\t".join(fields)


def decode_entry(line: str) -> Optional[Entry]:
    """Decode a single index document line, or return None if it must be skipped."""
    parts = line.split("\t")

    if len(parts) < FIELD_COUNT:
        return None

    kind = EntryKind.parse(parts[0])

    if kind is None or not parts[6]:
        return None

    hash_ = None

    if parts[4] != EMPTY_FIELD:
        algorithm = HashAlgorithm.parse(parts[4])

        if algorithm is not None and algorithm is not HashAlgorithm.NONE:
            hash_ = FileHash(algorithm, parts[5])

    return Entry(
        kind=kind,
        name=parts[6],
        creation_time=_parse_time(parts[1]),
        modify_time=_parse_time(parts[2]),
        length=_parse_length(parts[3]),
        hash=hash_,
    )


def parse_document(text: str) -> Iterator[Entry]:
    """Parse all valid entries of an index document in order."""
    for line in text.replace("\r", "\n").split("\n"):
        if not line:
            continue

        entry = decode_entry(line)

        if entry is not None:
            yield entry


def render_document(entries: Iterable[Entry]) -> str:
    """Render entries as index document text with one terminated line per entry."""
    return "".join(encode_entry(entry) + "\n" for entry in entries)


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return EMPTY_FIELD

    # Entries only hold UTC timestamps, so the suffix is always accurate
    if value.microsecond:
        return value.strftime("%Y-%m-%d %H:%M:%S.%fZ")
    else:
        return value.strftime("%Y-%m-%d %H:%M:%SZ")


def _parse_time(field: str) -> Optional[datetime]:
    if field == EMPTY_FIELD:
        return None

    text = field.strip()

    if text.endswith(("Z", "z")):
        text = text[:-1]

    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        return None

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    else:
        return value.astimezone(timezone.utc)


def _parse_length(field: str) -> Optional[int]:
    if field == EMPTY_FIELD or not (field.isascii() and field.isdigit()):
        return None

    return int(field)
