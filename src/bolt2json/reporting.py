"""Diagnostic and usage output, and process termination"""
import sys
from typing import NoReturn

import structlog

from .config import PROGRAM_NAME, Config
from .diagnostics import Diagnostic

logger = structlog.get_logger(__name__)

FLAGS = [
    ("-h, --help", "Display this helpful message."),
    ("-v, --version", "Display the version of the translator."),
    ("-o, --output FILE", "Output JSON rules to FILE (.json added if missing)."),
    ("-d, --debug", "Show internal traces when a translation fails."),
]


def format_diagnostic(diagnostic: Diagnostic, program: str = PROGRAM_NAME) -> str:
    """Format as ``program[:line:column]: message``"""
    if diagnostic.position is not None:
        return (
            f"{program}:{diagnostic.position.line}:{diagnostic.position.column}: "
            f"{diagnostic.message}"
        )
    return f"{program}: {diagnostic.message}"


def usage_text(program: str = PROGRAM_NAME) -> str:
    """Help text with examples and the flag table"""
    width = max(len(flag) for flag, _ in FLAGS)
    lines = [
        "Translate Bolt rules definitions into JSON rules.",
        "",
        f"Usage: {program} [flags] [file]",
        "",
        "Examples:",
        f"  {program} rules.bolt                 Creates rules.json.",
        f"  {program} < rules.bolt > rules.json  Reads stdin and writes to stdout.",
        f"  {program} -o out.json rules.bolt     Writes rules to out.json.",
        "",
        "Flags:",
    ]
    lines.extend(f"  {flag.ljust(width)}  {effect}" for flag, effect in FLAGS)
    return "\n".join(lines)


def show_usage(code: int, program: str = PROGRAM_NAME) -> NoReturn:
    """Print the help text to stderr and exit with code"""
    print(usage_text(program), file=sys.stderr)
    sys.exit(code)


class ErrorReporter:
    """Report diagnostics on stderr and terminate the process"""

    def __init__(self, config: Config) -> None:
        self.config = config

    def report(self, diagnostic: Diagnostic) -> None:
        """Print the diagnostic line, preceded by the failure trace in debug mode"""
        if self.config.debug and diagnostic.cause is not None:
            logger.debug(
                f"{diagnostic.kind.value} failure",
                exc_info=(
                    type(diagnostic.cause),
                    diagnostic.cause,
                    diagnostic.cause.__traceback__,
                ),
            )
        print(format_diagnostic(diagnostic, self.config.program), file=sys.stderr, flush=True)

    def fail(self, diagnostic: Diagnostic) -> NoReturn:
        """Report the diagnostic and exit with its code"""
        self.report(diagnostic)
        sys.exit(diagnostic.exit_code)
