"""Cross-project entity resolution: grouping, conflict detection and identity."""

from __future__ import annotations

from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..errors import MissingAnalysisError, NoEntitiesError
from ..logging import get_logger
from ..models import Conflict, EntityKind, FileAnalysis, FileKey, ProjectAnalysis, index_snapshot, unique_files
from .aggregator import EntityAggregator, EntityGroup, GroupKey
from .conflicts import ConflictDetector
from .identity import IdentityAssigner


@dataclass(frozen=True)
class ResolvedEntity:
    """A group after conflict detection and identity assignment."""

    unified_id: str
    unified_path: str
    name: str
    kind: EntityKind
    is_shared: bool
    mergeable: bool
    members: tuple[FileKey, ...]
    conflicts: tuple[Conflict, ...] = ()
    aggregated_attributes: Dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def errors(self) -> List[Conflict]:
        return [conflict for conflict in self.conflicts if conflict.is_error]

    @property
    def warnings(self) -> List[Conflict]:
        return [conflict for conflict in self.conflicts if not conflict.is_error]


@dataclass(frozen=True)
class ResolutionFailure:
    """An entity excluded from the output because its inputs were incomplete."""

    kind: EntityKind
    name: str
    reason: str


@dataclass
class ConflictReport:
    critical_errors: List[Conflict] = field(default_factory=list)
    warnings: List[Conflict] = field(default_factory=list)

    @property
    def total_conflicts(self) -> int:
        return len(self.critical_errors) + len(self.warnings)

    @property
    def has_conflicts(self) -> bool:
        return self.total_conflicts > 0


@dataclass
class ResolutionSummary:
    total_input_entities: int = 0
    total_groups: int = 0
    total_shared: int = 0
    total_mergeable: int = 0
    total_failures: int = 0
    critical_errors: int = 0
    warnings: int = 0


@dataclass
class ResolutionResult:
    """Resolved entities keyed by kind, plus the run-wide conflict report."""

    entities: Dict[EntityKind, List[ResolvedEntity]]
    report: ConflictReport
    failures: List[ResolutionFailure]
    summary: ResolutionSummary

    def all_entities(self) -> List[ResolvedEntity]:
        return [entity for kind in EntityKind for entity in self.entities.get(kind, [])]

    def find(self, kind: EntityKind, name: str) -> Optional[ResolvedEntity]:
        return next((entity for entity in self.entities.get(kind, []) if entity.name == name), None)


_Outcome = Union[ResolvedEntity, ResolutionFailure]


class EntityResolver:
    """Runs aggregation, per-group conflict detection and identity assignment."""

    def __init__(
        self,
        aggregator: EntityAggregator | None = None,
        detector: ConflictDetector | None = None,
        identity: IdentityAssigner | None = None,
        *,
        max_workers: int = 1,
    ) -> None:
        self.aggregator = aggregator or EntityAggregator()
        self.detector = detector or ConflictDetector()
        self.identity = identity or IdentityAssigner()
        self.max_workers = max(1, max_workers)
        self.logger = get_logger("resolution")

    def resolve(self, projects: Sequence[ProjectAnalysis]) -> ResolutionResult:
        projects = [unique_files(project, self.logger) for project in projects]
        groups = self.aggregator.aggregate(projects)
        if not groups:
            raise NoEntitiesError("No valid entities found across the input projects")
        return self.resolve_groups(groups, index_snapshot(projects))

    def resolve_groups(
        self,
        groups: Mapping[GroupKey, EntityGroup],
        analyses: Mapping[FileKey, FileAnalysis],
    ) -> ResolutionResult:
        ordered = list(groups.values())

        def _task(group: EntityGroup) -> _Outcome:
            return self._resolve_group(group, analyses)

        if self.max_workers > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = dict(zip([group.key for group in ordered], pool.map(_task, ordered)))
        else:
            outcomes = {group.key: _task(group) for group in ordered}

        return self._collect(ordered, outcomes)

    def _resolve_group(
        self, group: EntityGroup, analyses: Mapping[FileKey, FileAnalysis]
    ) -> _Outcome:
        try:
            detection = self.detector.detect(group, analyses)
            attributes = self._aggregate_attributes(group, analyses)
        except MissingAnalysisError as exc:
            self.logger.warning("Excluding %s %s: %s", group.kind.value, group.name, exc)
            return ResolutionFailure(kind=group.kind, name=group.name, reason=str(exc))

        identity = self.identity.assign(group.kind, group.name)
        return ResolvedEntity(
            unified_id=identity.unified_id,
            unified_path=identity.unified_path,
            name=group.name,
            kind=group.kind,
            is_shared=group.is_shared,
            mergeable=detection.mergeable,
            members=tuple(group.sources),
            conflicts=detection.conflicts,
            aggregated_attributes=attributes,
        )

    def _aggregate_attributes(
        self, group: EntityGroup, analyses: Mapping[FileKey, FileAnalysis]
    ) -> Dict[str, Any]:
        files = []
        for candidate in group.members:
            analysis = analyses.get(candidate.source)
            if analysis is None:
                raise MissingAnalysisError(candidate.source)
            files.append(analysis)

        first = group.first
        markup: Counter = Counter()
        accessors: Counter = Counter()
        for analysis in files:
            for entry in analysis.markup_usage:
                markup[entry.name] += entry.count
            for entry in analysis.state_accessor_usage:
                accessors[entry.name] += entry.count

        wrappers: List[str] = []
        for candidate in group.members:
            for wrapper in candidate.attributes.wrappers:
                if wrapper not in wrappers:
                    wrappers.append(wrapper)

        attributes: Dict[str, Any] = {
            "role": files[0].role or "unknown",
            "lines_of_code": sum(analysis.lines_of_code for analysis in files) / len(files),
            "original_paths": [str(source) for source in group.sources],
        }
        if group.kind is EntityKind.COMPONENT:
            attributes["form"] = first.attributes.form
            attributes["markup_usage"] = _counter_profile(markup)
            attributes["wrappers"] = wrappers
        if group.kind in {EntityKind.COMPONENT, EntityKind.STATE_ACCESSOR}:
            attributes["state_accessor_usage"] = _counter_profile(accessors)
        if group.kind is EntityKind.CONTAINER:
            attributes["container_sites"] = list(first.attributes.container_sites)
        return attributes

    def _collect(
        self, ordered: Sequence[EntityGroup], outcomes: Mapping[GroupKey, _Outcome]
    ) -> ResolutionResult:
        entities: Dict[EntityKind, List[ResolvedEntity]] = {kind: [] for kind in EntityKind}
        failures: List[ResolutionFailure] = []
        report = ConflictReport()
        summary = ResolutionSummary(
            total_input_entities=sum(len(group.members) for group in ordered),
            total_groups=len(ordered),
        )
        seen_ids: Dict[str, GroupKey] = {}

        for group in ordered:
            outcome = outcomes[group.key]
            if isinstance(outcome, ResolutionFailure):
                failures.append(outcome)
                continue

            previous = seen_ids.setdefault(outcome.unified_id, group.key)
            if previous != group.key:
                self.logger.warning(
                    "Unified id %s is shared by %s and %s",
                    outcome.unified_id,
                    previous[1],
                    group.name,
                )

            entities[outcome.kind].append(outcome)
            report.critical_errors.extend(outcome.errors)
            report.warnings.extend(outcome.warnings)
            if outcome.is_shared:
                summary.total_shared += 1
            if outcome.mergeable:
                summary.total_mergeable += 1
            if outcome.errors:
                self.logger.warning(
                    "%s %s cannot be merged automatically (%d critical conflicts)",
                    outcome.kind.value,
                    outcome.name,
                    len(outcome.errors),
                )

        if not any(entities.values()):
            message = "No valid entities found across the input projects"
            if failures:
                reasons = "; ".join(f"{item.kind.value} {item.name}: {item.reason}" for item in failures)
                message = f"{message} ({reasons})"
            raise NoEntitiesError(message)

        summary.total_failures = len(failures)
        summary.critical_errors = len(report.critical_errors)
        summary.warnings = len(report.warnings)
        self.logger.info(
            "Resolved %d groups (%d shared, %d mergeable); %d critical conflicts, %d warnings",
            summary.total_groups - summary.total_failures,
            summary.total_shared,
            summary.total_mergeable,
            summary.critical_errors,
            summary.warnings,
        )
        return ResolutionResult(entities=entities, report=report, failures=failures, summary=summary)


def _counter_profile(counter: Counter) -> List[Dict[str, Any]]:
    return [{"name": name, "count": count} for name, count in sorted(counter.items())]


__all__ = [
    "ConflictReport",
    "EntityResolver",
    "ResolutionFailure",
    "ResolutionResult",
    "ResolutionSummary",
    "ResolvedEntity",
]
