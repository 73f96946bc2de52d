"""Typed file graph produced per project."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class NodeRole(str, Enum):
    PAGE = "page"
    COMPONENT = "component"
    STATE_ACCESSOR = "state_accessor"
    CONTAINER = "container"
    UTILITY = "utility"
    API = "api"
    CONFIG = "config"
    ASSET = "asset"
    STYLE = "style"
    UNKNOWN = "unknown"


class EdgeKind(str, Enum):
    """Relationship kinds between two files of the same project."""

    IMPORT = "import"
    DYNAMIC_IMPORT = "dynamicImport"
    RENDER_USAGE = "renderUsage"
    CONTAINER_USAGE = "containerUsage"
    WRAPPER_USAGE = "wrapperUsage"
    TYPE_USAGE = "typeUsage"


@dataclass(frozen=True)
class GraphNode:
    id: str
    role: NodeRole
    lines_of_code: int = 0
    is_entry_file: bool = False
    declaration_counts: Dict[str, int] = field(default_factory=dict, hash=False)


@dataclass
class GraphEdge:
    """A directed relationship; unique per `(source, target, kind)` in a graph."""

    source: str
    target: str
    kind: EdgeKind
    weight: int = 0
    referenced_names: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UnresolvedImport:
    importer: str
    specifier: str
    reason: str = "Could not resolve to an internal project file."


@dataclass
class DependencyGraph:
    """Nodes, edges and unresolved imports of one project."""

    project: str
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    unresolved_imports: List[UnresolvedImport] = field(default_factory=list)

    @property
    def total_nodes(self) -> int:
        return len(self.nodes)

    @property
    def total_edges(self) -> int:
        return len(self.edges)

    def node(self, node_id: str) -> Optional[GraphNode]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def edges_of_kind(self, kind: EdgeKind | str) -> List[GraphEdge]:
        wanted = EdgeKind(kind)
        return [edge for edge in self.edges if edge.kind is wanted]


__all__ = [
    "DependencyGraph",
    "EdgeKind",
    "GraphEdge",
    "GraphNode",
    "NodeRole",
    "UnresolvedImport",
]
