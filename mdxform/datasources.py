"""Datasource lookup backing dynamically populated selects.

A dynamic ``@select source="/api/products"`` only emits the markup that fetches
its options on load. Whatever serves that path resolves the exact source
string to a list of option values; :class:`DatasourceRegistry` is an in-memory
implementation of that lookup, usually filled from ``mdxform.yaml``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Protocol

from .io_utils import PathLike, load_config
from .models import CompilerConfig, SelectNode
from .parser import FormTree
from .renderer import jinja_env


class Datasource(Protocol):
    def resolve(self, source: str) -> List[str]:
        ...


@dataclass
class DatasourceRegistry:
    entries: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: CompilerConfig) -> "DatasourceRegistry":
        return cls({key: list(values) for key, values in config.datasources.items()})

    def register(self, source: str, values: Iterable[str]) -> None:
        self.entries[source] = list(values)

    def resolve(self, source: str) -> List[str]:
        """Return the options for ``source``; unknown sources resolve to no options."""

        return list(self.entries.get(source, []))

    def __contains__(self, source: object) -> bool:
        return source in self.entries


def load_datasources(path: PathLike) -> DatasourceRegistry:
    """Build a registry from the ``datasources`` mapping of an mdxform.yaml file."""

    return DatasourceRegistry.from_config(load_config(path))


def options_html(source: str, datasource: Datasource, *, escape: bool = False) -> str:
    """Render the option list a datasource endpoint returns for ``source``."""

    template = jinja_env(escape=escape).get_template("options.html.jinja")
    return template.render(options=datasource.resolve(source))


def sources_in(tree: FormTree) -> List[str]:
    sources: List[str] = []
    for node in tree.iter_nodes():
        if isinstance(node, SelectNode) and node.source and node.source not in sources:
            sources.append(node.source)
    return sources


def missing_sources(tree: FormTree, registry: DatasourceRegistry) -> List[str]:
    return [source for source in sources_in(tree) if source not in registry]


__all__ = [
    "Datasource",
    "DatasourceRegistry",
    "load_datasources",
    "missing_sources",
    "options_html",
    "sources_in",
]
