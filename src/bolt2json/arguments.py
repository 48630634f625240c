"""Command line argument resolution"""
import argparse
from dataclasses import dataclass
from typing import NoReturn, Optional, Sequence, Tuple

from .config import PROGRAM_NAME
from .exceptions import UsageError


@dataclass(frozen=True)
class CLIOptions:
    """Parsed command line.

    ``output`` is None when ``--output`` was not given, and an empty string when it was given
    without a file name.
    """

    show_version: bool = False
    show_help: bool = False
    debug: bool = False
    output: Optional[str] = None
    positionals: Tuple[str, ...] = ()


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting"""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    cmd_parser = _ArgumentParser(prog=PROGRAM_NAME, add_help=False, allow_abbrev=False)
    cmd_parser.add_argument("-h", "--help", action="store_true", dest="show_help")
    cmd_parser.add_argument("-v", "--version", action="store_true", dest="show_version")
    cmd_parser.add_argument("-d", "--debug", action="store_true")
    cmd_parser.add_argument("-o", "--output", nargs="?", const="", default=None)
    cmd_parser.add_argument("positionals", nargs="*")
    return cmd_parser


def resolve_arguments(argv: Sequence[str]) -> CLIOptions:
    """Read command line arguments, raising UsageError on misuse"""
    args = _build_parser().parse_args(list(argv))
    # argparse keeps negative-number lookalikes such as -5 as positionals
    for token in args.positionals:
        if token.startswith("-"):
            raise UsageError(f"unrecognized arguments: {token}")
    if len(args.positionals) > 1:
        raise UsageError(f"Too many input files: {' '.join(args.positionals)}")
    return CLIOptions(
        show_version=args.show_version,
        show_help=args.show_help,
        debug=args.debug,
        output=args.output,
        positionals=tuple(args.positionals),
    )
