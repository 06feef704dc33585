"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
import os
from typing import List, Optional

from httpdirfs.constants import (
    DEFAULT_DIRECTORY_DOCUMENT,
    DEFAULT_ENCODING,
    DEFAULT_RECURSIVE_DOCUMENT,
    DEFAULT_TIMEOUT_MS,
)
from httpdirfs.index.common import HashAlgorithm
from httpdirfs.logger import log


@dataclass
class HttpConfig:
    """Configuration variables related to accessing a remote tree over HTTP."""

    address: Optional[str] = None

    directory_document: str = DEFAULT_DIRECTORY_DOCUMENT
    recursive_document: str = DEFAULT_RECURSIVE_DOCUMENT

    encoding: str = DEFAULT_ENCODING
    timeout: int = DEFAULT_TIMEOUT_MS  # milliseconds

    # Append a unique query parameter to every request to bypass HTTP caches
    prevent_cache: bool = False

    @staticmethod
    def load(section: SectionProxy) -> HttpConfig:
        """Load overridden variables from a section within a config file."""
        config = HttpConfig()

        config.address = section.get("address", fallback=config.address)

        config.directory_document = section.get(
            "directory_document", fallback=config.directory_document
        )
        config.recursive_document = section.get(
            "recursive_document", fallback=config.recursive_document
        )

        config.encoding = section.get("encoding", fallback=config.encoding)
        config.timeout = section.getint("timeout", fallback=config.timeout)

        config.prevent_cache = section.getboolean(
            "prevent_cache", fallback=config.prevent_cache
        )

        return config


@dataclass
class IndexConfig:
    """Configuration variables related to index document generation."""

    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    ignored_paths: List[str] = field(default_factory=list)

    lock_path: str = os.path.expanduser("~/.httpdirfs/index.lock")

    @staticmethod
    def load(section: SectionProxy) -> IndexConfig:
        """Load overridden variables from a section within a config file."""
        config = IndexConfig()

        if "hash_algorithm" in section:
            algorithm = HashAlgorithm.parse(section["hash_algorithm"])

            if algorithm is None:
                raise ValueError(f"unknown hash algorithm {section['hash_algorithm']}")

            config.hash_algorithm = algorithm

        if "ignored_paths" in section:
            config.ignored_paths = [
                p.strip() for p in section["ignored_paths"].split(",") if p.strip()
            ]

        config.lock_path = os.path.expanduser(
            section.get("lock_path", fallback=config.lock_path)
        )

        return config


@dataclass
class Config:
    """Configuration variables."""

    http: HttpConfig = field(default_factory=HttpConfig)
    index: IndexConfig = field(default_factory=IndexConfig)

    @staticmethod
    def load(filename: str) -> Config:
        """Load overridden configuration variables from a config file."""
        parser = ConfigParser()

        config = Config()

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)

            if "http" in parser:
                config.http = HttpConfig.load(parser["http"])

            if "index" in parser:
                config.index = IndexConfig.load(parser["index"])
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
        except Exception as e:
            # An unreadable config file is not considered a fatal error since we can
            # fall back to defaults.
            log.error(f"failed to read config file {filename}: {e}")
        else:
            log.info(f"loaded config: {config}")

        return config
