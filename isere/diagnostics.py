"""
Diagnostics for the Isere compiler.

Every stage (lexer, parser, code generator) describes its problems with a
``Diagnostic``. A ``DiagnosticSink`` collects them and echoes one
human-readable line per diagnostic, tagged with its severity
("Error: ...", "Warning: ...").

Author: xwest
"""

import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO

from .lexer.tokens import SourceLocation


@dataclass
class Diagnostic:
    """A single compiler message (error, warning, note)."""
    message: str
    location: Optional[SourceLocation] = None
    severity: str = "error"  # "error", "warning", "note"
    code: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def __str__(self) -> str:
        result = f"{self.severity.capitalize()}: {self.message}"
        if self.location is not None:
            result += f" ({self.location})"
        return result


class DiagnosticSink:
    """
    Collects diagnostics and writes them to a text stream.

    The stream defaults to ``sys.stderr`` looked up at report time, so test
    harnesses that swap stderr see the output.
    """

    def __init__(self, stream: Optional[TextIO] = None, echo: bool = True):
        self.stream = stream
        self.echo = echo
        self.diagnostics: List[Diagnostic] = []

    def report(self, diagnostic: Diagnostic) -> None:
        """Record a diagnostic and echo it."""
        self.diagnostics.append(diagnostic)
        if self.echo:
            print(str(diagnostic), file=self.stream or sys.stderr)

    def error(self, message: str, location: Optional[SourceLocation] = None,
              code: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(message, location, "error", code)
        self.report(diagnostic)
        return diagnostic

    def warning(self, message: str, location: Optional[SourceLocation] = None,
                code: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(message, location, "warning", code)
        self.report(diagnostic)
        return diagnostic

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)

    def clear(self) -> None:
        self.diagnostics.clear()
