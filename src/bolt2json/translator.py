"""Translate Bolt source text into a JSON rules document"""
import json
from dataclasses import dataclass
from typing import Optional

import structlog

from .config import Config
from .diagnostics import Diagnostic, ErrorKind, Position
from .exceptions import GenerationError, ParseError
from .rules_generator import RulesDocument, generate
from .symbols import parse

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TranslationResult:
    """Either the translated text or the diagnostic that stopped the translation"""

    text: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        """Whether the translation succeeded"""
        return self.diagnostic is None


def render(document: RulesDocument) -> str:
    """Pretty-print a rules document, without a trailing newline"""
    return json.dumps(document, indent=2)


class Translator:
    """Run the parser and the generator on a source text"""

    def __init__(self, config: Config) -> None:
        self.config = config

    def translate(self, source_text: str) -> TranslationResult:
        """Translation entrance"""
        try:
            symbols = parse(source_text)
            logger.debug(
                "parsed source",
                functions=len(symbols.functions),
                types=len(symbols.schemas),
                paths=len(symbols.paths),
            )
            document = generate(symbols)
        except ParseError as exc:
            position = Position(exc.line, exc.column)
            return TranslationResult(
                diagnostic=Diagnostic(exc.message, ErrorKind.PARSE, position, cause=exc)
            )
        except GenerationError as exc:
            return TranslationResult(
                diagnostic=Diagnostic(exc.message, ErrorKind.GENERATION, cause=exc)
            )

        logger.debug("generated rules", top_level=len(document["rules"]))
        return TranslationResult(text=render(document))
