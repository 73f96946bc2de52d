"""Pipeline orchestration for resolve/graph/plan runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .classify import Classifier, discover_classifier
from .config import ConfigError, FusionConfig
from .graph import DependencyGraph, DependencyGraphBuilder, load_alias_table, merge_alias_tables
from .logging import get_logger
from .models import ProjectAnalysis
from .planning import ContentMerger, MergeDecisionCoordinator, MergePlan, MergeReport, execute
from .resolution import ConflictDetector, EntityAggregator, EntityResolver, IdentityAssigner, ResolutionResult
from .snapshot import Snapshot, load_snapshot


@dataclass
class FusionRun:
    """Everything produced by one pass over a snapshot."""

    resolution: ResolutionResult
    graphs: Dict[str, DependencyGraph] = field(default_factory=dict)
    plans: List[MergePlan] = field(default_factory=list)


class Orchestrator:
    """Wires resolution, graph construction and planning from one configuration."""

    def __init__(
        self,
        config: FusionConfig | None = None,
        *,
        classifier: Classifier | None = None,
        resolver: EntityResolver | None = None,
        coordinator: MergeDecisionCoordinator | None = None,
        merger: ContentMerger | None = None,
    ) -> None:
        self.config = config or FusionConfig(root=Path.cwd())
        self.logger = get_logger("orchestrator")
        self.classifier = classifier or self._resolve_classifier(self.config.classifier)
        self.resolver = resolver or EntityResolver(
            EntityAggregator(self.classifier),
            ConflictDetector(line_count_tolerance=self.config.conflicts.line_count_tolerance),
            IdentityAssigner(
                base_dir=self.config.identity.base_dir,
                extension=self.config.identity.extension,
            ),
            max_workers=self.config.execution.max_workers,
        )
        self.coordinator = coordinator or MergeDecisionCoordinator(
            base_score=self.config.planning.base_score,
            warning_penalty=self.config.planning.warning_penalty,
            review_threshold=self.config.planning.review_threshold,
        )
        self.merger = merger

    def resolve(self, projects: Sequence[ProjectAnalysis]) -> ResolutionResult:
        self.logger.info("Resolving entities across %d projects", len(projects))
        return self.resolver.resolve(projects)

    def build_graphs(
        self,
        projects: Sequence[ProjectAnalysis],
        aliases: Optional[Mapping[str, List[str]]] = None,
    ) -> Dict[str, DependencyGraph]:
        graph_config = self.config.graph
        builder = DependencyGraphBuilder(
            extensions=graph_config.extensions,
            root_prefixes=graph_config.root_prefixes,
            aliases=merge_alias_tables(aliases or {}, graph_config.aliases),
            alias_sigils=graph_config.alias_sigils,
            entry_files=graph_config.entry_files,
            max_workers=self.config.execution.max_workers,
        )
        return builder.build_all(projects)

    def run(
        self,
        projects: Sequence[ProjectAnalysis],
        aliases: Optional[Mapping[str, List[str]]] = None,
    ) -> FusionRun:
        resolution = self.resolve(projects)
        graphs = self.build_graphs(projects, aliases)
        plans = self.coordinator.plan_all(resolution.all_entities())
        return FusionRun(resolution=resolution, graphs=graphs, plans=plans)

    def run_snapshot(self, snapshot: Snapshot, tsconfig: Path | None = None) -> FusionRun:
        return self.run(snapshot.projects, self.aliases_for(snapshot, tsconfig))

    def merge(self, run: FusionRun, texts: Mapping[str, str]) -> MergeReport:
        return execute(run.plans, texts, self.merger)

    def aliases_for(self, snapshot: Snapshot, tsconfig: Path | None = None) -> Dict[str, List[str]]:
        """Snapshot aliases, overridden by tsconfig paths (config aliases apply last)."""
        tables = [snapshot.aliases]
        if tsconfig is not None:
            tables.append(load_alias_table(tsconfig))
        return merge_alias_tables(*tables)

    def load(self, snapshot_path: Path) -> Snapshot:
        snapshot = load_snapshot(snapshot_path)
        self.logger.info(
            "Loaded %d projects (%d files) from %s",
            len(snapshot.projects),
            sum(len(project.files) for project in snapshot.projects),
            snapshot_path,
        )
        return snapshot

    def _resolve_classifier(self, name: str) -> Classifier:
        try:
            return discover_classifier(name)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


__all__ = ["FusionRun", "Orchestrator"]
