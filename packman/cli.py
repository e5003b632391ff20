"""Command-line entry point."""

from __future__ import annotations

import os
import stat
import sys
import time
from collections.abc import Sequence

from . import script
from .local import local_tree
from .tree import Tree
from .vpk import read

VERSION = "dev"


def _log(message: str) -> None:
    print(f"{time.strftime('%Y/%m/%d %H:%M:%S')} {message}", file=sys.stderr)


def _run(path: str) -> int:
    with open(path, "rb") as handle:
        source = handle.read()
    script.parse(source).run(_log)
    return 0


def _list(path: str) -> int:
    info = os.stat(path)
    tree: Tree = local_tree(path) if stat.S_ISDIR(info.st_mode) else read(path)
    for name, entry in tree.find(""):
        try:
            print(name, entry.size())
        except OSError:
            print(name)
    return 0


def _usage() -> None:
    program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "packman"
    print("Usage:")
    print()
    print("   ", program, "<command> [arguments]")
    print()
    print("The commands and their arguments:")
    print()
    print("    run  <path>     run the script")
    print("    list <path>     read file tree")
    print("    version         print app version")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command given in ``argv`` and return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args:
        command, rest = args[0], args[1:]
        try:
            if command == "run" and len(rest) == 1:
                return _run(rest[0])
            if command == "list" and len(rest) == 1:
                return _list(rest[0])
            if command in ("ver", "version") and not rest:
                print(VERSION)
                return 0
        except (OSError, ValueError) as error:
            _log(str(error))
            return 1
    _usage()
    return 1


if __name__ == "__main__":
    sys.exit(main())