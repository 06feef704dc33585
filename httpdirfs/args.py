"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
from typing import List, Optional

from httpdirfs.constants import VERSION


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    command: str

    # index
    directory: str
    recursive: bool
    recursive_document: bool
    ignore: List[str]

    # ls, stat, cat
    address: str
    path: str

    config: str

    debug: bool
    prevent_cache: bool
    timeout: Optional[int]

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        return cls._get_parser().parse_args(args, namespace=cls())

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Browse and publish directory trees over plain HTTP.",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION}",
            help="show the program version",
        )

        # Path to (optional) config file
        parser.add_argument(
            "--config",
            type=str,
            help="path to config file (default is ~/.httpdirfs/config)",
            default="~/.httpdirfs/config",
        )

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        # Bypass HTTP caches, overrides the config file if set
        parser.add_argument(
            "--prevent-cache",
            action="store_true",
            help="append a unique query parameter to every request",
        )

        # Configure network timeout, overrides the config file if set
        parser.add_argument(
            "--timeout",
            type=cls._parse_timeout,
            help="timeout for network requests in milliseconds",
        )

        commands = parser.add_subparsers(dest="command", metavar="command")
        commands.required = True

        index = commands.add_parser(
            "index", help="generate index documents for a local directory"
        )
        index.add_argument("directory", type=str, help="directory to index")
        index.add_argument(
            "--no-recursive",
            action="store_false",
            help="only index the directory itself, not its subdirectories",
            dest="recursive",
        )
        index.add_argument(
            "--recursive-document",
            action="store_true",
            help="also write a single document listing the entire tree",
        )
        index.add_argument(
            "--ignore",
            type=str,
            action="append",
            default=[],
            metavar="PATH",
            help="path to leave out of the recursive document (repeatable)",
        )

        ls = commands.add_parser("ls", help="list a remote directory")
        ls.add_argument("address", type=str, help="base address of the remote tree")
        ls.add_argument("path", type=str, nargs="?", default="/", help="directory")
        ls.add_argument(
            "-r", "--recursive", action="store_true", help="list all descendants"
        )

        stat = commands.add_parser("stat", help="describe a remote file or directory")
        stat.add_argument("address", type=str, help="base address of the remote tree")
        stat.add_argument("path", type=str, help="path of the entry")

        cat = commands.add_parser("cat", help="write a remote file to stdout")
        cat.add_argument("address", type=str, help="base address of the remote tree")
        cat.add_argument("path", type=str, help="path of the file")

        return parser

    @staticmethod
    def _parse_timeout(arg: str) -> int:
        try:
            val = int(arg)
            assert val > 0
            return val
        except (ValueError, AssertionError):
            raise argparse.ArgumentTypeError("expected number > 0")
