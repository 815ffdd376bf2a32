"""Render form trees into HTML fragments wired for htmx partial updates.

Interpolated values are emitted verbatim unless ``escape=True`` is requested;
the default matches what existing forms already rely on.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from markupsafe import Markup

from .diagnostics import UNESCAPED_CONTENT, Diagnostic, report
from .models import (
    CheckboxNode,
    ContainerNode,
    FormNode,
    GroupNode,
    InputNode,
    Node,
    RootNode,
    SelectNode,
    SubmitNode,
)
from .parser import FormTree

TEMPLATES_DIR = Path(__file__).parent / "templates"
RESULT_ID = "form-result"
HTML_SPECIAL_CHARS = frozenset("<>&\"'")


def jinja_env(*, escape: bool = False) -> Environment:
    """Create a Jinja environment over the bundled node templates."""

    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=escape,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


def _template_context(node: Node, children: Markup) -> Dict[str, object]:
    if isinstance(node, FormNode):
        return {
            "template": "form.html.jinja",
            "action": node.action,
            "method": node.method,
            "result_id": RESULT_ID,
            "children": children,
        }
    if isinstance(node, GroupNode):
        return {"template": "group.html.jinja", "label": node.label, "children": children}
    if isinstance(node, InputNode):
        return {
            "template": "input.html.jinja",
            "name": node.name,
            "label": node.label,
            "input_type": node.input_type,
        }
    if isinstance(node, CheckboxNode):
        return {"template": "checkbox.html.jinja", "name": node.name, "label": node.label}
    if isinstance(node, SelectNode):
        return {
            "template": "select.html.jinja",
            "name": node.name,
            "label": node.label,
            "source": node.source,
            "options": node.options,
        }
    if isinstance(node, SubmitNode):
        return {"template": "submit.html.jinja", "label": node.label}
    return {"template": "unknown.html.jinja", "kind": node.kind}


def _interpolated_values(context: Dict[str, object]) -> List[str]:
    values: List[str] = []
    for key, value in context.items():
        if key in ("template", "children", "result_id"):
            continue
        if isinstance(value, str):
            values.append(value)
        elif isinstance(value, list):
            values.extend(value)
    return values


def _check_unescaped(node: Node, context: Dict[str, object]) -> Optional[Diagnostic]:
    for value in _interpolated_values(context):
        if HTML_SPECIAL_CHARS.intersection(value):
            return Diagnostic(
                UNESCAPED_CONTENT,
                f"@{node.kind} emits {value!r} without HTML escaping",
                node.line,
                severity="info",
            )
    return None


def render(
    tree: FormTree,
    *,
    escape: bool = False,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> str:
    """Render ``tree`` to a single HTML string.

    Children are always stored after their parent in the arena, so walking the
    arena backwards renders every child before the container that wraps it.
    """

    env = jinja_env(escape=escape)
    rendered: List[str] = [""] * len(tree.nodes)
    issues: List[Diagnostic] = []

    for index in range(len(tree.nodes) - 1, -1, -1):
        node = tree.nodes[index]
        children = ""
        if isinstance(node, ContainerNode):
            children = "\n".join(rendered[child] for child in node.children)
            for child in node.children:
                rendered[child] = ""
        if isinstance(node, RootNode):
            rendered[index] = children
            continue

        context = _template_context(node, Markup(children))
        if not escape:
            issue = _check_unescaped(node, context)
            if issue is not None:
                issues.append(issue)
        template = env.get_template(str(context.pop("template")))
        rendered[index] = template.render(**context)

    for issue in reversed(issues):
        report(diagnostics, issue)
    return rendered[0]


__all__ = ["RESULT_ID", "TEMPLATES_DIR", "jinja_env", "render"]
