"""Compilation pipeline from MDX directive text to htmx-ready HTML."""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .diagnostics import Diagnostic
from .io_utils import PathLike, read_source, write_text
from .models import CompilerConfig
from .parser import FormTree, parse
from .renderer import render
from .tokenizer import tokenize


@dataclass
class CompileResult:
    html: str
    tree: FormTree
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [item for item in self.diagnostics if item.severity == "warning"]


def mdx_to_htmx(source: str) -> str:
    """Tokenize, parse and render ``source`` with default options."""

    tokens = tokenize(source)
    tree = parse(tokens)
    return render(tree)


def compile_mdx(source: str, config: CompilerConfig | None = None) -> CompileResult:
    """Run the full pipeline and collect diagnostics from every stage.

    In strict mode a structural problem raises ``MdxStructureError``.
    """

    config = config or CompilerConfig()
    diagnostics: List[Diagnostic] = []
    tokens = tokenize(source, diagnostics)
    tree = parse(tokens, strict=config.strict, diagnostics=diagnostics)
    html = render(tree, escape=config.escape, diagnostics=diagnostics)
    return CompileResult(html=html, tree=tree, diagnostics=diagnostics)


def render_file(
    input_path: PathLike, output_path: PathLike, config: Optional[CompilerConfig] = None
) -> CompileResult:
    result = compile_mdx(read_source(input_path), config)
    write_text(output_path, result.html + "\n")
    return result


def check_rendered(
    input_path: PathLike, output_path: PathLike, config: Optional[CompilerConfig] = None
) -> str:
    """Return a unified diff between the stored output and a fresh render.

    An empty string means the stored file is current.
    """

    expected = compile_mdx(read_source(input_path), config).html + "\n"
    target = Path(output_path)
    current = target.read_text(encoding="utf-8") if target.exists() else ""
    if current == expected:
        return ""
    diff = difflib.unified_diff(
        current.splitlines(keepends=True),
        expected.splitlines(keepends=True),
        fromfile=f"current/{target.name}",
        tofile=f"rendered/{target.name}",
    )
    return "".join(diff)


__all__ = ["CompileResult", "check_rendered", "compile_mdx", "mdx_to_htmx", "render_file"]
