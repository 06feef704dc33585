"""Module implementing the commands of the command-line interface."""

import dataclasses
import shutil
import sys
from typing import Callable, Dict, TextIO

from httpdirfs.args import Arguments
from httpdirfs.config import Config, HttpConfig
import httpdirfs.filesystem as filesystem
from httpdirfs.index.codec import encode_entry
from httpdirfs.index.generator import IndexGenerator
from httpdirfs.logger import log

# Exit code for a remote path that does not exist
NOT_FOUND_CODE = 1


def run(args: Arguments, config: Config) -> int:
    """Run the command selected by the arguments and return its exit code."""
    return COMMANDS[args.command](args, config)


def run_index(args: Arguments, config: Config) -> int:
    """Generate index documents for a local directory."""
    backend = filesystem.LocalFileSystem(
        args.directory, hash_algorithm=config.index.hash_algorithm
    )

    generator = IndexGenerator(
        backend,
        directory_document=config.http.directory_document,
        recursive_document=config.http.recursive_document,
        lock_path=config.index.lock_path,
    )

    log.info(f"indexing {backend.root}")
    generator.create_directory_index("/", recursive=args.recursive)

    if args.recursive_document:
        ignored_paths = config.index.ignored_paths + args.ignore
        generator.create_recursive_index("/", ignored_paths=ignored_paths)

    return 0


def run_ls(args: Arguments, config: Config, out: TextIO = sys.stdout) -> int:
    """Print the entries of a remote directory, one index line per entry."""
    with _open_remote(args, config) as fs:
        for entry in fs.list(args.path, recursive=args.recursive):
            print(encode_entry(entry), file=out)

    return 0


def run_stat(args: Arguments, config: Config, out: TextIO = sys.stdout) -> int:
    """Print the index line of a single remote entry."""
    with _open_remote(args, config) as fs:
        entry = fs.stat(args.path)

    if entry is None:
        log.error(f"no such file or directory: {args.path}")
        return NOT_FOUND_CODE

    print(encode_entry(entry), file=out)

    return 0


def run_cat(args: Arguments, config: Config) -> int:
    """Copy the contents of a remote file to stdout."""
    with _open_remote(args, config) as fs:
        try:
            with fs.open(args.path) as f:
                shutil.copyfileobj(f, sys.stdout.buffer)
        except FileNotFoundError:
            log.error(f"no such file: {args.path}")
            return NOT_FOUND_CODE

    sys.stdout.flush()

    return 0


def _open_remote(args: Arguments, config: Config) -> filesystem.HttpFileSystem:
    """Create an HTTP file system with command-line overrides applied."""
    http_config: HttpConfig = dataclasses.replace(config.http, address=args.address)

    if args.timeout is not None:
        http_config.timeout = args.timeout

    if args.prevent_cache:
        http_config.prevent_cache = True

    return filesystem.HttpFileSystem(config=http_config)


COMMANDS: Dict[str, Callable[[Arguments, Config], int]] = {
    "index": run_index,
    "ls": run_ls,
    "stat": run_stat,
    "cat": run_cat,
}
