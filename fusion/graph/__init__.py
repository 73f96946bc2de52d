"""Dependency graph construction for individual projects."""

from .aliases import load_alias_table, merge_alias_tables
from .builder import DependencyGraphBuilder, infer_node_role
from .models import DependencyGraph, EdgeKind, GraphEdge, GraphNode, NodeRole, UnresolvedImport
from .resolver import ImportResolution, ImportResolver

__all__ = [
    "DependencyGraph",
    "DependencyGraphBuilder",
    "EdgeKind",
    "GraphEdge",
    "GraphNode",
    "ImportResolution",
    "ImportResolver",
    "NodeRole",
    "UnresolvedImport",
    "infer_node_role",
    "load_alias_table",
    "merge_alias_tables",
]
