"""Stack-based tree builder for MDX tokens.

Nodes live in an arena (``FormTree.nodes``); containers refer to their
children by index and the open-container stack is a list of indexes. The root
always sits at index 0 and every child is stored after its parent.

Closing directives pop exactly one level without checking which kind of
container they close. A close with only the root open pops the root itself;
from then on nothing has an attachment point and the remaining directives are
discarded. Both cases are reported as diagnostics, or raised in strict mode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Type

from .diagnostics import (
    DETACHED_DIRECTIVE,
    MISMATCHED_CLOSE,
    UNCLOSED_CONTAINER,
    UNMATCHED_CLOSE,
    UNRECOGNIZED_DIRECTIVE,
    Diagnostic,
    MdxStructureError,
    report,
)
from .models import (
    CheckboxNode,
    ContainerNode,
    FormNode,
    GroupNode,
    InputNode,
    Node,
    NodeBase,
    OpaqueNode,
    RootNode,
    SelectNode,
    SubmitNode,
)
from .tokenizer import Token

ROOT_INDEX = 0

OPENERS: Dict[str, Type[ContainerNode]] = {"form": FormNode, "group": GroupNode}
CLOSERS: Dict[str, str] = {"endform": "form", "endgroup": "group"}
LEAF_TYPES: Dict[str, Type[NodeBase]] = {
    "input": InputNode,
    "checkbox": CheckboxNode,
    "select": SelectNode,
    "submit": SubmitNode,
}


@dataclass
class FormTree:
    nodes: List[Node] = field(default_factory=lambda: [RootNode()])

    @property
    def root(self) -> RootNode:
        return self.nodes[ROOT_INDEX]  # type: ignore[return-value]

    def children(self, node: ContainerNode) -> List[Node]:
        return [self.nodes[index] for index in node.children]

    def add(self, node: Node, parent: int) -> int:
        """Store ``node`` in the arena and append it to ``parent``'s children."""

        index = len(self.nodes)
        self.nodes.append(node)
        self.nodes[parent].children.append(index)  # type: ignore[union-attr]
        return index

    def iter_nodes(self) -> Iterator[Node]:
        """Yield every node below the root, depth-first in child order."""

        pending = list(reversed(self.root.children))
        while pending:
            node = self.nodes[pending.pop()]
            yield node
            if isinstance(node, ContainerNode):
                pending.extend(reversed(node.children))

    def to_dict(self, index: int = ROOT_INDEX) -> Dict[str, Any]:
        node = self.nodes[index]
        payload: Dict[str, Any] = {"kind": node.kind, "props": dict(node.props)}
        if node.line:
            payload["line"] = node.line
        if isinstance(node, ContainerNode):
            payload["children"] = [self.to_dict(child) for child in node.children]
        return payload


def _build_leaf(token: Token, diagnostics: Optional[List[Diagnostic]]) -> Node:
    leaf_type = LEAF_TYPES.get(token.directive)
    if leaf_type is not None:
        return leaf_type.from_props(token.props, line=token.line)  # type: ignore[return-value]

    report(
        diagnostics,
        Diagnostic(
            UNRECOGNIZED_DIRECTIVE,
            f"@{token.directive} has no rendering rule; it renders as a comment",
            token.line,
            severity="info",
        ),
    )
    return OpaqueNode(directive=token.directive, props=dict(token.props), line=token.line)


def _close(
    tree: FormTree,
    stack: List[int],
    token: Token,
    *,
    strict: bool,
    diagnostics: Optional[List[Diagnostic]],
) -> None:
    if len(stack) <= 1:
        if stack:
            message = f"@{token.directive} has no open container; it closes the root"
        else:
            message = f"@{token.directive} has no open container to close"
        issue = Diagnostic(UNMATCHED_CLOSE, message, token.line)
        if strict:
            raise MdxStructureError(issue)
        report(diagnostics, issue)
        if stack:
            stack.pop()
        return

    expected = CLOSERS[token.directive]
    current = tree.nodes[stack[-1]]
    if current.kind != expected:
        issue = Diagnostic(
            MISMATCHED_CLOSE,
            f"@{token.directive} closes @{current.kind} opened on line {current.line}",
            token.line,
        )
        if strict:
            raise MdxStructureError(issue)
        report(diagnostics, issue)
    stack.pop()


def parse(
    tokens: Iterable[Token],
    *,
    strict: bool = False,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> FormTree:
    tree = FormTree()
    stack: List[int] = [ROOT_INDEX]

    for token in tokens:
        if token.directive in CLOSERS:
            _close(tree, stack, token, strict=strict, diagnostics=diagnostics)
            continue

        if not stack:
            report(
                diagnostics,
                Diagnostic(
                    DETACHED_DIRECTIVE,
                    f"@{token.directive} follows the close of the root and is dropped",
                    token.line,
                ),
            )
            continue

        opener = OPENERS.get(token.directive)
        if opener is not None:
            container = opener.from_props(token.props, line=token.line)
            stack.append(tree.add(container, stack[-1]))  # type: ignore[arg-type]
            continue

        tree.add(_build_leaf(token, diagnostics), stack[-1])

    for index in stack[1:]:
        open_node = tree.nodes[index]
        issue = Diagnostic(
            UNCLOSED_CONTAINER,
            f"@{open_node.kind} is never closed",
            open_node.line,
        )
        if strict:
            raise MdxStructureError(issue)
        report(diagnostics, issue)

    return tree


__all__ = ["CLOSERS", "FormTree", "LEAF_TYPES", "OPENERS", "ROOT_INDEX", "parse"]
