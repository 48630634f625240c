"""Reportable failures and their exit codes"""
import enum
from dataclasses import dataclass, field
from typing import Optional


class ErrorKind(enum.Enum):
    """Failure category, each mapped to a process exit code"""

    USAGE = "usage"
    IO = "io"
    PARSE = "parse"
    GENERATION = "generation"

    @property
    def exit_code(self) -> int:
        """Exit code for this kind of failure"""
        return 2 if self is ErrorKind.GENERATION else 1


@dataclass(frozen=True)
class Position:
    """1-based line and column in the source text"""

    line: int
    column: int


@dataclass(frozen=True)
class Diagnostic:
    """A failure with a message and an optional source position"""

    message: str
    kind: ErrorKind
    position: Optional[Position] = None
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @property
    def has_position(self) -> bool:
        """Whether the failure is tied to a source span"""
        return self.position is not None

    @property
    def exit_code(self) -> int:
        """Exit code to terminate with"""
        return self.kind.exit_code
