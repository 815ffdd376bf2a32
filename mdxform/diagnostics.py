"""Non-fatal diagnostics collected while compiling MDX sources.

The tokenizer, parser and renderer never raise in their default mode. Issues
are appended to an optional caller-supplied list instead; strict parsing turns
the structural ones into :class:`MdxStructureError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional

Severity = Literal["warning", "info"]

UNPARSABLE_LINE = "UnparsableLine"
UNMATCHED_CLOSE = "UnmatchedClose"
MISMATCHED_CLOSE = "MismatchedClose"
UNCLOSED_CONTAINER = "UnclosedContainer"
DETACHED_DIRECTIVE = "DetachedDirective"
UNRECOGNIZED_DIRECTIVE = "UnrecognizedDirective"
UNESCAPED_CONTENT = "UnescapedContent"


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    line: Optional[int] = None
    severity: Severity = "warning"

    def format(self) -> str:
        location = f"line {self.line}" if self.line else "document"
        return f"{location}: [{self.code}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "line": self.line,
            "severity": self.severity,
        }


class MdxStructureError(ValueError):
    """Raised by strict parsing when the container structure is unbalanced."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.format())
        self.diagnostic = diagnostic


def report(diagnostics: Optional[List[Diagnostic]], diagnostic: Diagnostic) -> None:
    if diagnostics is not None:
        diagnostics.append(diagnostic)


def has_warnings(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(item.severity == "warning" for item in diagnostics)


__all__ = [
    "DETACHED_DIRECTIVE",
    "Diagnostic",
    "MISMATCHED_CLOSE",
    "MdxStructureError",
    "Severity",
    "UNCLOSED_CONTAINER",
    "UNESCAPED_CONTENT",
    "UNMATCHED_CLOSE",
    "UNPARSABLE_LINE",
    "UNRECOGNIZED_DIRECTIVE",
    "has_warnings",
    "report",
]
