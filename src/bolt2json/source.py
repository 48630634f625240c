"""Locate the Bolt source and the translation destination"""
import enum
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

import structlog

from .arguments import CLIOptions
from .exceptions import SourceAccessError, UsageError

logger = structlog.get_logger(__name__)

SOURCE_EXTENSION = ".bolt"
TARGET_EXTENSION = ".json"


class Origin(enum.Enum):
    """Where the source text was read from"""

    STDIN = "stdin"
    FILE = "file"


@dataclass(frozen=True)
class TranslationRequest:
    """Source text of one invocation"""

    source_text: str
    origin: Origin
    path: Optional[Path] = None


@dataclass(frozen=True)
class SourceLocations:
    """Resolved input and output files, None stands for stdin and stdout"""

    input_path: Optional[Path] = None
    output_path: Optional[Path] = None


def ensure_extension(file_name: str, extension: str) -> str:
    """Append extension when the file name has none"""
    if os.path.splitext(file_name)[1] == "":
        return file_name + extension
    return file_name


def replace_extension(file_name: str, extension: str) -> str:
    """Replace the extension of the file name, or add one"""
    return os.path.splitext(file_name)[0] + extension


def locate(options: CLIOptions) -> SourceLocations:
    """Resolve the input and output paths, before any file is touched"""
    input_path: Optional[Path] = None
    output_path: Optional[Path] = None

    if options.positionals:
        input_path = Path(ensure_extension(options.positionals[0], SOURCE_EXTENSION))

    if options.output is not None:
        if options.output == "":
            raise UsageError("Missing output file name.")
        output_path = Path(ensure_extension(options.output, TARGET_EXTENSION))
    elif input_path is not None:
        output_path = Path(replace_extension(str(input_path), TARGET_EXTENSION))

    if input_path is not None and input_path == output_path:
        suggestion = replace_extension(options.positionals[0], SOURCE_EXTENSION)
        raise SourceAccessError(
            f"Cannot overwrite input file: {input_path} (Did you mean '{suggestion}'?)"
        )

    logger.debug("resolved locations", input=str(input_path), output=str(output_path))
    return SourceLocations(input_path, output_path)


def _reason(exc: Exception) -> str:
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc)


def read_source(locations: SourceLocations, stdin: Optional[TextIO] = None) -> TranslationRequest:
    """Read the whole source text from the input file or from stdin"""
    if locations.input_path is None:
        stream = stdin if stdin is not None else sys.stdin
        if stream.isatty():
            print("Type Bolt source on standard input (end with Ctrl-D).", file=sys.stderr)
        try:
            text = stream.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceAccessError(f"Cannot read standard input: {_reason(exc)}") from exc
        logger.debug("read source", path="<stdin>", size=len(text))
        return TranslationRequest(text, Origin.STDIN)

    try:
        text = locations.input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceAccessError(f"Cannot read {locations.input_path}: {_reason(exc)}") from exc
    logger.debug("read source", path=str(locations.input_path), size=len(text))
    return TranslationRequest(text, Origin.FILE, locations.input_path)
