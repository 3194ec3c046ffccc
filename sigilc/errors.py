"""Diagnostics collected by the compiler passes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, TextIO

MAX_MESSAGE_LENGTH = 511


class ErrorKind(Enum):
    """The compiler phase that reported an error."""

    LEXER = "lexer"
    PARSER = "parser"
    DESUGAR = "desugar"
    TYPE = "type"
    TRAIT = "trait"
    RESOLVE = "resolve"


@dataclass(frozen=True)
class SrcLoc:
    """A position in a source file."""

    file: str | None = None
    line: int = 0
    col: int = 0
    offset: int = 0


@dataclass(frozen=True)
class SigilError:
    """One reported diagnostic."""

    kind: ErrorKind
    loc: SrcLoc
    message: str

    def format(self) -> str:
        """Render as ``file:line:col: kind error: message``."""
        file = self.loc.file if self.loc.file is not None else "<input>"
        return f"{file}:{self.loc.line}:{self.loc.col}: {self.kind.value} error: {self.message}"


class ErrorList:
    """An ordered collection of diagnostics."""

    def __init__(self) -> None:
        self._errors: list[SigilError] = []

    def add(self, kind: ErrorKind, loc: SrcLoc | None, message: str) -> SigilError:
        """Record an error; overly long messages are truncated."""
        error = SigilError(kind, loc if loc is not None else SrcLoc(), message[:MAX_MESSAGE_LENGTH])
        self._errors.append(error)
        return error

    def has_errors(self) -> bool:
        return bool(self._errors)

    def format_all(self) -> list[str]:
        return [error.format() for error in self._errors]

    def print_all(self, stream: TextIO | None = None) -> None:
        """Write every error, one per line, to ``stream`` (stderr by default)."""
        out = stream if stream is not None else sys.stderr
        for line in self.format_all():
            out.write(line + "\n")

    def __iter__(self) -> Iterator[SigilError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return True