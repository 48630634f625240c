"""Runtime configuration and structlog setup for bolt2json.

Logs are rendered by structlog's console renderer on stderr, stdout is reserved for the
translation itself. ``--debug`` lowers the level to DEBUG, which also makes failure traces
visible.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from .arguments import CLIOptions

PROGRAM_NAME = "bolt2json"


@dataclass(frozen=True)
class Config:
    """Settings shared by the pipeline stages, fixed after argument resolution"""

    debug: bool = False
    program: str = PROGRAM_NAME

    @classmethod
    def from_options(cls, options: CLIOptions) -> Config:
        """Build the configuration from parsed command line options"""
        return cls(debug=options.debug)


def configure_logging(config: Config) -> None:
    """Configure structlog processors and route log output to stderr."""
    level = logging.DEBUG if config.debug else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger(__package__)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
