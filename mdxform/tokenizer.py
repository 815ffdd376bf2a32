"""Line tokenizer for the MDX form directive language.

Each non-blank, non-comment line of the form ``@name key="value" ...`` becomes
one :class:`Token`. Lines of any other shape are dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .diagnostics import UNPARSABLE_LINE, Diagnostic, report

COMMENT_MARKER = "@//"

DIRECTIVE_RE = re.compile(r"^@(\w+)(.*)$", re.ASCII)
PROP_RE = re.compile(r'(\w+)="([^"]*)"', re.ASCII)


@dataclass(frozen=True)
class Token:
    directive: str
    props: Dict[str, str] = field(default_factory=dict)
    line: int = 0

    def to_dict(self) -> dict:
        return {"directive": self.directive, "props": dict(self.props), "line": self.line}


def extract_props(rest: str) -> Dict[str, str]:
    """Collect ``key="value"`` pairs left to right; a repeated key keeps its last value."""

    props: Dict[str, str] = {}
    for match in PROP_RE.finditer(rest):
        props[match.group(1)] = match.group(2)
    return props


def tokenize(source: str, diagnostics: Optional[List[Diagnostic]] = None) -> List[Token]:
    tokens: List[Token] = []
    for number, raw_line in enumerate(source.split("\n"), start=1):
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue

        match = DIRECTIVE_RE.match(line)
        if not match:
            report(
                diagnostics,
                Diagnostic(UNPARSABLE_LINE, f"not a directive line: {line!r}", number),
            )
            continue

        directive, rest = match.groups()
        tokens.append(Token(directive=directive, props=extract_props(rest), line=number))
    return tokens


__all__ = ["COMMENT_MARKER", "Token", "extract_props", "tokenize"]
