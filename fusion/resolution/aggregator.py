"""Grouping of same-kind, same-name declarations across projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Set, Tuple

from ..classify import Classifier, DeclarationSite, HeuristicClassifier
from ..logging import get_logger
from ..models import EntityKind, FileAnalysis, FileKey, ProjectAnalysis

GroupKey = Tuple[EntityKind, str]


@dataclass(frozen=True)
class CandidateAttributes:
    """Declaration-level facts captured once when a candidate is created."""

    form: str | None = None
    wrappers: tuple[str, ...] = ()
    container_sites: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntityCandidate:
    """One declaration site of a tracked unit."""

    name: str
    kind: EntityKind
    source: FileKey
    attributes: CandidateAttributes = field(default_factory=CandidateAttributes)


@dataclass
class EntityGroup:
    """All candidates sharing `(kind, name)`, in deterministic member order."""

    kind: EntityKind
    name: str
    members: List[EntityCandidate] = field(default_factory=list)

    @property
    def key(self) -> GroupKey:
        return (self.kind, self.name)

    @property
    def is_shared(self) -> bool:
        return len(self.members) > 1

    @property
    def first(self) -> EntityCandidate:
        return self.members[0]

    @property
    def sources(self) -> List[FileKey]:
        return [member.source for member in self.members]


class EntityAggregator:
    """Scans every file analysis and groups candidates by kind and name.

    Member order follows project input order, then the file order inside each
    project. Every "first member" rule downstream relies on this ordering.
    """

    def __init__(self, classifier: Classifier | None = None) -> None:
        self.classifier = classifier or HeuristicClassifier()
        self.logger = get_logger("resolution.aggregator")

    def aggregate(self, projects: Sequence[ProjectAnalysis]) -> Dict[GroupKey, EntityGroup]:
        groups: Dict[GroupKey, EntityGroup] = {}
        total = 0
        for project in projects:
            for analysis in project.files:
                source = FileKey(project.name, analysis.path)
                for candidate in self._candidates(source, analysis):
                    group = groups.get((candidate.kind, candidate.name))
                    if group is None:
                        group = EntityGroup(kind=candidate.kind, name=candidate.name)
                        groups[group.key] = group
                    group.members.append(candidate)
                    total += 1

        self.logger.info(
            "Aggregated %d candidates into %d groups from %d projects",
            total,
            len(groups),
            len(projects),
        )
        return groups

    def _candidates(self, source: FileKey, analysis: FileAnalysis) -> Iterator[EntityCandidate]:
        seen: Set[GroupKey] = set()

        def _emit(site: DeclarationSite, attributes: CandidateAttributes) -> Iterator[EntityCandidate]:
            guess = self.classifier.classify(site)
            if guess.kind is None:
                self.logger.debug("Skipping %s in %s: %s", site.name, source, guess.reason)
                return
            key = (guess.kind, site.name)
            if key in seen:
                return
            seen.add(key)
            yield EntityCandidate(name=site.name, kind=guess.kind, source=source, attributes=attributes)

        for component in analysis.components:
            yield from _emit(
                DeclarationSite(component.name, analysis, component=component),
                CandidateAttributes(form=component.form, wrappers=tuple(sorted(component.wrappers))),
            )

        for usage in analysis.state_accessor_usage:
            yield from _emit(DeclarationSite(usage.name, analysis), CandidateAttributes())

        for container in analysis.containers:
            yield from _emit(
                DeclarationSite(container.name, analysis, container=container),
                CandidateAttributes(container_sites=analysis.container_sites(container.name)),
            )

        for declaration in [*analysis.functions, *analysis.variables]:
            yield from _emit(
                DeclarationSite(declaration.name, analysis, declaration=declaration),
                CandidateAttributes(),
            )


__all__ = [
    "CandidateAttributes",
    "EntityAggregator",
    "EntityCandidate",
    "EntityGroup",
    "GroupKey",
]
