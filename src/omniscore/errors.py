"""
Diagnostics and typed errors.

Compilation is lenient: malformed input degrades to a best-effort score
and each degradation is recorded as a Diagnostic. Only unrecoverable
faults (and strict mode) surface as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DiagnosticSeverity(str, Enum):
    """Severity level for compile diagnostics."""

    ERROR = "error"  # Input could not be honoured at all
    WARNING = "warning"  # Input was partly ignored or truncated
    INFO = "info"  # Lenient default applied


@dataclass
class Diagnostic:
    """A single compile diagnostic."""

    severity: DiagnosticSeverity
    code: str
    message: str
    line: int | None = None
    column: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
        }
        if self.line is not None:
            d["line"] = self.line
            d["column"] = self.column
        return d

    def __str__(self) -> str:
        prefix = f"[{self.severity.value.upper()}]"
        location = f" at {self.line}:{self.column}" if self.line is not None else ""
        return f"{prefix} {self.code}: {self.message}{location}"


class Diagnostics:
    """Ordered collection of diagnostics for one compilation."""

    def __init__(self) -> None:
        self.issues: list[Diagnostic] = []

    def add(
        self,
        severity: DiagnosticSeverity,
        code: str,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> Diagnostic:
        issue = Diagnostic(severity, code, message, line, column)
        self.issues.append(issue)
        return issue

    def add_error(
        self, code: str, message: str, line: int | None = None, column: int | None = None
    ) -> None:
        """Add an error issue."""
        self.add(DiagnosticSeverity.ERROR, code, message, line, column)

    def add_warning(
        self, code: str, message: str, line: int | None = None, column: int | None = None
    ) -> None:
        """Add a warning issue."""
        self.add(DiagnosticSeverity.WARNING, code, message, line, column)

    def add_info(
        self, code: str, message: str, line: int | None = None, column: int | None = None
    ) -> None:
        """Add an info issue."""
        self.add(DiagnosticSeverity.INFO, code, message, line, column)

    @property
    def errors(self) -> list[Diagnostic]:
        """Get all error issues."""
        return [i for i in self.issues if i.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        """Get all warning issues."""
        return [i for i in self.issues if i.severity == DiagnosticSeverity.WARNING]

    @property
    def is_clean(self) -> bool:
        """Return True if there are no warnings or errors (info is OK)."""
        return not self.errors and not self.warnings

    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def to_list(self) -> list[dict[str, Any]]:
        return [i.to_dict() for i in self.issues]

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self):
        return iter(self.issues)

    def __str__(self) -> str:
        if not self.issues:
            return "No diagnostics"
        return "\n".join(str(issue) for issue in self.issues)


class OmniScoreError(Exception):
    """Base class for OmniScore errors."""


class CompileError(OmniScoreError):
    """An unrecoverable fault during compilation, unrelated to input shape."""


class StrictModeError(CompileError):
    """Raised in strict mode when compilation produced warnings or errors."""

    def __init__(self, diagnostics: Diagnostics) -> None:
        self.diagnostics = diagnostics
        first = (diagnostics.errors or diagnostics.warnings)[0]
        count = len(diagnostics.errors) + len(diagnostics.warnings)
        super().__init__(f"{count} issue(s) in strict mode; first: {first}")


class DocumentNotFoundError(OmniScoreError, KeyError):
    """A named document is not held by the document manager."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Document not found"
