"""Pydantic models for MDX form nodes and compiler options."""

from typing import Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class NodeBase(BaseModel):
    """Fields shared by every node of a form tree."""

    props: Dict[str, str] = Field(
        default_factory=dict,
        description="Key/value pairs tokenized from the originating directive line.",
    )
    line: int = Field(
        0, description="Source line of the directive; 0 for the implicit root."
    )

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0):
        return cls(props=dict(props), line=line)


class ContainerNode(NodeBase):
    """Node that owns an ordered list of children."""

    children: List[int] = Field(
        default_factory=list,
        description="Arena indexes of child nodes, in the order they were appended.",
    )


class RootNode(ContainerNode):
    """Implicit top-level container created once per parse."""

    kind: Literal["root"] = "root"


class FormNode(ContainerNode):
    """``@form`` container posting its fields to ``action``."""

    kind: Literal["form"] = "form"
    action: str = Field("#", description="Submission URL used for hx-post.")
    method: str = Field("post", description="Value of the form's method attribute.")

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0) -> "FormNode":
        return cls(
            props=dict(props),
            line=line,
            action=props.get("action") or "#",
            method=props.get("method") or "post",
        )


class GroupNode(ContainerNode):
    """``@group`` container rendered as a labelled block."""

    kind: Literal["group"] = "group"
    label: str = Field("", description="Heading shown above the grouped fields.")

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0) -> "GroupNode":
        return cls(props=dict(props), line=line, label=props.get("label", ""))


class InputNode(NodeBase):
    kind: Literal["input"] = "input"
    name: str = ""
    label: str = ""
    input_type: str = Field("text", alias="type", description="HTML input type.")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0) -> "InputNode":
        return cls(
            props=dict(props),
            line=line,
            name=props.get("name", ""),
            label=props.get("label", ""),
            input_type=props.get("type") or "text",
        )


class CheckboxNode(NodeBase):
    kind: Literal["checkbox"] = "checkbox"
    name: str = ""
    label: str = ""

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0) -> "CheckboxNode":
        return cls(
            props=dict(props),
            line=line,
            name=props.get("name", ""),
            label=props.get("label", ""),
        )


class SelectNode(NodeBase):
    """``@select`` with either literal options or a dynamic ``source``."""

    kind: Literal["select"] = "select"
    name: str = ""
    label: str = ""
    options: List[str] = Field(
        default_factory=list,
        description="Literal option values split from props.options (static variant).",
    )
    source: Optional[str] = Field(
        None,
        description="Datasource path fetched on load (dynamic variant), e.g. /api/products.",
    )

    @property
    def is_dynamic(self) -> bool:
        return self.source is not None

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0) -> "SelectNode":
        source = props.get("source") or None
        options = [] if source else props.get("options", "").split(",")
        return cls(
            props=dict(props),
            line=line,
            name=props.get("name", ""),
            label=props.get("label", ""),
            options=options,
            source=source,
        )


class SubmitNode(NodeBase):
    kind: Literal["submit"] = "submit"
    label: str = ""

    @classmethod
    def from_props(cls, props: Mapping[str, str], *, line: int = 0) -> "SubmitNode":
        return cls(props=dict(props), line=line, label=props.get("label", ""))


class OpaqueNode(NodeBase):
    """Leaf for a directive without a rendering rule, kept for forward compatibility."""

    directive: str = Field(..., description="Directive name as written in the source.")

    @property
    def kind(self) -> str:
        return self.directive


Node = Union[
    RootNode,
    FormNode,
    GroupNode,
    InputNode,
    CheckboxNode,
    SelectNode,
    SubmitNode,
    OpaqueNode,
]


class CompilerConfig(BaseModel):
    """Options read from mdxform.yaml and overridable on the command line."""

    strict: bool = Field(
        False,
        description="Raise on unbalanced or mismatched containers instead of tolerating them.",
    )
    escape: bool = Field(
        False,
        description="HTML-escape interpolated values; off by default to keep output verbatim.",
    )
    datasources: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Option values keyed by the exact select source path.",
    )

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "CheckboxNode",
    "CompilerConfig",
    "ContainerNode",
    "FormNode",
    "GroupNode",
    "InputNode",
    "Node",
    "NodeBase",
    "OpaqueNode",
    "RootNode",
    "SelectNode",
    "SubmitNode",
]
