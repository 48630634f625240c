"""Deliver the translation to stdout or to a file"""
import sys
from pathlib import Path
from typing import Optional

import structlog

from .exceptions import SourceAccessError

logger = structlog.get_logger(__name__)


def write_translation(text: str, output_path: Optional[Path]) -> None:
    """Write the translated text.

    Files get a progress notice on stderr first and a trailing newline. On stdout the text is
    written as is, so that the output can be piped.
    """
    if output_path is None:
        sys.stdout.write(text)
        sys.stdout.flush()
        return

    print(f"Generating {output_path}...", file=sys.stderr, flush=True)
    try:
        output_path.write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        raise SourceAccessError(f"Cannot write {output_path}: {exc.strerror or exc}") from exc
    logger.debug("wrote translation", path=str(output_path), size=len(text) + 1)
