"""Per-project dependency graph construction."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..classify import HeuristicClassifier
from ..config import DEFAULT_ALIAS_SIGILS, DEFAULT_ENTRY_FILES, DEFAULT_EXTENSIONS, DEFAULT_ROOT_PREFIXES
from ..logging import get_logger
from ..models import FileAnalysis, ProjectAnalysis, unique_files
from .models import DependencyGraph, EdgeKind, GraphEdge, GraphNode, NodeRole, UnresolvedImport
from .resolver import ImportResolver

_ROLE_ALIASES = {
    "page": NodeRole.PAGE,
    "component": NodeRole.COMPONENT,
    "hook": NodeRole.STATE_ACCESSOR,
    "state_accessor": NodeRole.STATE_ACCESSOR,
    "context": NodeRole.CONTAINER,
    "container": NodeRole.CONTAINER,
    "util": NodeRole.UTILITY,
    "utility": NodeRole.UTILITY,
    "api": NodeRole.API,
    "config": NodeRole.CONFIG,
    "asset": NodeRole.ASSET,
    "style": NodeRole.STYLE,
}

_PATH_CONVENTIONS: Tuple[Tuple[str, NodeRole], ...] = (
    ("pages/", NodeRole.PAGE),
    ("routes/", NodeRole.PAGE),
    ("layouts/", NodeRole.COMPONENT),
    ("components/", NodeRole.COMPONENT),
    ("hooks/", NodeRole.STATE_ACCESSOR),
    ("context/", NodeRole.CONTAINER),
    ("contexts/", NodeRole.CONTAINER),
    ("api/", NodeRole.API),
)

_EXTENSION_ROLES = {
    ".json": NodeRole.CONFIG,
    ".css": NodeRole.STYLE,
    ".scss": NodeRole.STYLE,
    ".less": NodeRole.STYLE,
    ".png": NodeRole.ASSET,
    ".jpg": NodeRole.ASSET,
    ".jpeg": NodeRole.ASSET,
    ".gif": NodeRole.ASSET,
    ".svg": NodeRole.ASSET,
    ".ts": NodeRole.UTILITY,
    ".tsx": NodeRole.UTILITY,
    ".js": NodeRole.UTILITY,
    ".jsx": NodeRole.UTILITY,
}


def infer_node_role(analysis: FileAnalysis) -> NodeRole:
    """Explicit role, then structural signal, then path convention, then extension."""
    explicit = _ROLE_ALIASES.get((analysis.role or "").lower())
    if explicit is not None:
        return explicit
    if "page" in analysis.kind_hints:
        return NodeRole.PAGE

    if analysis.components:
        return NodeRole.COMPONENT
    if any(
        HeuristicClassifier.is_state_accessor(usage.name, analysis)
        for usage in analysis.state_accessor_usage
    ):
        return NodeRole.STATE_ACCESSOR
    if any(site.site == "definition" for site in analysis.containers):
        return NodeRole.CONTAINER

    lowered = f"/{analysis.path.lower()}"
    for segment, role in _PATH_CONVENTIONS:
        if f"/{segment}" in lowered:
            return role

    return _EXTENSION_ROLES.get(analysis.extension, NodeRole.UNKNOWN)


class _EdgeIndex:
    """Keeps edges unique per `(source, target, kind)` in discovery order."""

    def __init__(self) -> None:
        self._edges: Dict[Tuple[str, str, EdgeKind], GraphEdge] = {}

    def add(self, source: str, target: str, kind: EdgeKind, name: str, weight: int = 1) -> None:
        if source == target:
            return
        key = (source, target, kind)
        edge = self._edges.get(key)
        if edge is None:
            edge = GraphEdge(source=source, target=target, kind=kind)
            self._edges[key] = edge
        edge.weight += max(1, weight)
        if name and name not in edge.referenced_names:
            edge.referenced_names.append(name)

    def edges(self) -> List[GraphEdge]:
        return list(self._edges.values())


class _ProjectIndex:
    """Name lookups for one project; the first file in traversal order wins."""

    def __init__(self, files: Sequence[FileAnalysis]) -> None:
        self.components: Dict[str, str] = {}
        self.container_definitions: Dict[str, str] = {}
        self.callables: Dict[str, str] = {}
        self.types: Dict[str, str] = {}
        for analysis in files:
            exported_names = {export.name for export in analysis.exports}
            for component in analysis.components:
                if component.exported or component.name in exported_names:
                    self.components.setdefault(component.name, analysis.path)
            for site in analysis.containers:
                if site.site == "definition":
                    self.container_definitions.setdefault(site.name, analysis.path)
            for export in analysis.exports:
                if export.kind in {"function", "variable"}:
                    self.callables.setdefault(export.name, analysis.path)
            for declared in analysis.declared_types:
                if declared.exported:
                    self.types.setdefault(declared.name, analysis.path)


class DependencyGraphBuilder:
    """Builds one typed file graph per project; graphs are never merged."""

    def __init__(
        self,
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        root_prefixes: Sequence[str] = DEFAULT_ROOT_PREFIXES,
        aliases: Optional[Mapping[str, Sequence[str]]] = None,
        alias_sigils: Sequence[str] = DEFAULT_ALIAS_SIGILS,
        entry_files: Iterable[str] = DEFAULT_ENTRY_FILES,
        max_workers: int = 1,
    ) -> None:
        self.extensions = tuple(extensions)
        self.root_prefixes = tuple(root_prefixes)
        self.aliases = dict(aliases or {})
        self.alias_sigils = tuple(alias_sigils)
        self.entry_files: Set[str] = {entry.lower() for entry in entry_files}
        self.max_workers = max(1, max_workers)
        self.logger = get_logger("graph")

    def build_all(self, projects: Sequence[ProjectAnalysis]) -> Dict[str, DependencyGraph]:
        if self.max_workers > 1 and len(projects) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                graphs = list(pool.map(self.build, projects))
        else:
            graphs = [self.build(project) for project in projects]

        result: Dict[str, DependencyGraph] = {}
        for graph in graphs:
            if graph.project in result:
                self.logger.warning("Duplicate project name %s; keeping the first graph", graph.project)
                continue
            result[graph.project] = graph
        return result

    def build(self, project: ProjectAnalysis) -> DependencyGraph:
        self.logger.info("Graphing dependencies for project %s", project.name)
        project = unique_files(project, self.logger)
        resolver = ImportResolver(
            (analysis.path for analysis in project.files),
            extensions=self.extensions,
            root_prefixes=self.root_prefixes,
            aliases=self.aliases,
            alias_sigils=self.alias_sigils,
        )
        lookup = _ProjectIndex(project.files)
        edges = _EdgeIndex()
        unresolved: List[UnresolvedImport] = []
        seen_unresolved: Set[Tuple[str, str]] = set()

        nodes = [self._node(analysis) for analysis in project.files]
        for analysis in project.files:
            source = analysis.path
            for record in analysis.imports:
                outcome = resolver.resolve(source, record.source)
                if outcome.target is not None:
                    kind = EdgeKind.DYNAMIC_IMPORT if record.dynamic else EdgeKind.IMPORT
                    edges.add(source, outcome.target, kind, record.local_name)
                elif outcome.unresolved and (source, record.source) not in seen_unresolved:
                    seen_unresolved.add((source, record.source))
                    unresolved.append(UnresolvedImport(importer=source, specifier=record.source))
                    self.logger.warning("Unresolved import in %s: %r", source, record.source)

            for usage in analysis.markup_usage:
                if not usage.name[:1].isupper():
                    continue
                target = lookup.components.get(usage.name)
                if target is not None:
                    edges.add(source, target, EdgeKind.RENDER_USAGE, usage.name, usage.count)

            for site in analysis.containers:
                if site.site not in {"provider", "consumer"}:
                    continue
                target = lookup.container_definitions.get(site.name)
                if target is not None:
                    edges.add(source, target, EdgeKind.CONTAINER_USAGE, site.name)

            for component in analysis.components:
                for wrapper in component.wrappers:
                    target = lookup.callables.get(wrapper)
                    if target is not None:
                        edges.add(source, target, EdgeKind.WRAPPER_USAGE, wrapper)

            for reference in analysis.type_references:
                target = lookup.types.get(reference.name)
                if target is not None:
                    edges.add(source, target, EdgeKind.TYPE_USAGE, reference.name, reference.count)

        graph = DependencyGraph(
            project=project.name,
            nodes=nodes,
            edges=edges.edges(),
            unresolved_imports=unresolved,
        )
        self.logger.info(
            "Project %s: %d nodes, %d edges, %d unresolved imports",
            project.name,
            graph.total_nodes,
            graph.total_edges,
            len(unresolved),
        )
        return graph

    def _node(self, analysis: FileAnalysis) -> GraphNode:
        return GraphNode(
            id=analysis.path,
            role=infer_node_role(analysis),
            lines_of_code=analysis.lines_of_code,
            is_entry_file=analysis.path.lower() in self.entry_files,
            declaration_counts={
                "components": len(analysis.components),
                "functions": len(analysis.functions),
                "variables": len(analysis.variables),
                "containers": sum(1 for site in analysis.containers if site.site == "definition"),
                "types": len(analysis.declared_types),
                "imports": len(analysis.imports),
                "exports": len(analysis.exports),
            },
        )


__all__ = ["DependencyGraphBuilder", "infer_node_role"]
