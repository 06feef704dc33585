"""
Module implementing the command-line interface and invoking the main logic of httpdirfs.

httpdirfs publishes directory trees over plain HTTP. The "index" command generates the
index documents of a local directory, which can then be served by any web server. The
"ls", "stat" and "cat" commands browse such a tree remotely through nothing but GET
requests.
"""

import logging
import os
import sys
from typing import List, NoReturn, Optional

from httpdirfs.args import Arguments
import httpdirfs.commands as commands
from httpdirfs.config import Config
import httpdirfs.constants as constants
from httpdirfs.logger import log


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Run the selected command with the given arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    # Parse command-line arguments.
    args = Arguments.parse(arguments)

    # Configure debug logging.
    if args.debug:
        log.setLevel(logging.DEBUG)
    else:
        log.setLevel(logging.ERROR)

    config = Config.load(os.path.expanduser(args.config))

    try:
        exit_code = commands.run(args, config)
    except KeyboardInterrupt:
        exit_code = 130
    except Exception as e:
        log.error(f"failed to run command: {e}")
        exit_code = constants.HTTPDIRFS_ERROR_CODE

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
