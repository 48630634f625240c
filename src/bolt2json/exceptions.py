"""Translation and command line exceptions"""
from .diagnostics import Diagnostic, ErrorKind


class TranslationException(Exception):
    """Base exception class for Bolt translation"""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParseError(TranslationException):
    """Syntax or definition fault tied to a source position"""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


class GenerationError(TranslationException):
    """Semantic fault found while generating the rules document"""


class CommandError(Exception):
    """Base exception class for command line failures"""

    kind = ErrorKind.IO

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.diagnostic = Diagnostic(message, self.kind, cause=self)


class UsageError(CommandError):
    """Bad flags or arguments, detected before any I/O"""

    kind = ErrorKind.USAGE


class SourceAccessError(CommandError):
    """Reading the source or writing the translation failed"""

    kind = ErrorKind.IO
