"""Command line entrance for translating Bolt to JSON rules"""
import sys
from typing import Optional, Sequence

import structlog

from ._version import __version__
from .arguments import resolve_arguments
from .config import PROGRAM_NAME, Config, configure_logging
from .exceptions import CommandError, UsageError
from .output import write_translation
from .reporting import ErrorReporter, format_diagnostic, show_usage
from .source import locate, read_source
from .translator import Translator

logger = structlog.get_logger(f"{__package__}.main")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run one translation, exiting with a non-zero code on failure"""
    try:
        options = resolve_arguments(sys.argv[1:] if argv is None else argv)
    except UsageError as exc:
        print(format_diagnostic(exc.diagnostic), file=sys.stderr)
        show_usage(1)

    if options.show_help:
        show_usage(0)
    if options.show_version:
        print(f"{PROGRAM_NAME} v{__version__}", file=sys.stderr)
        return

    config = Config.from_options(options)
    configure_logging(config)
    reporter = ErrorReporter(config)

    try:
        locations = locate(options)
    except UsageError as exc:
        reporter.report(exc.diagnostic)
        show_usage(1, config.program)
    except CommandError as exc:
        reporter.fail(exc.diagnostic)

    try:
        request = read_source(locations)
    except CommandError as exc:
        reporter.fail(exc.diagnostic)
    logger.debug("translating", origin=request.origin.value)

    result = Translator(config).translate(request.source_text)
    if result.diagnostic is not None:
        reporter.fail(result.diagnostic)
    assert result.text is not None

    try:
        write_translation(result.text, locations.output_path)
    except CommandError as exc:
        reporter.fail(exc.diagnostic)


if __name__ == "__main__":
    main()
