"""Pairwise structural comparison of group members against the first member."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, List, Mapping, Optional, Sequence

from ..errors import MissingAnalysisError
from ..logging import get_logger
from ..models import (
    Conflict,
    ConflictKind,
    EntityKind,
    FileAnalysis,
    FileKey,
    NameCount,
    Severity,
)
from .aggregator import EntityCandidate, EntityGroup

_KIND_LABELS = {
    EntityKind.COMPONENT: "component",
    EntityKind.STATE_ACCESSOR: "state accessor",
    EntityKind.CONTAINER: "container",
    EntityKind.UTILITY: "utility",
}

_ALL_KINDS = frozenset(EntityKind)


@dataclass(frozen=True)
class _Member:
    candidate: EntityCandidate
    analysis: FileAnalysis


@dataclass(frozen=True)
class _Dimension:
    kind: ConflictKind
    severity: Severity
    applies_to: FrozenSet[EntityKind]
    describe: str
    value: Callable[[_Member], Any]
    equal: Callable[[Any, Any], bool]


@dataclass(frozen=True)
class DetectionResult:
    """Conflicts found for one group and the resulting mergeability."""

    conflicts: tuple[Conflict, ...] = ()

    @property
    def mergeable(self) -> bool:
        return not any(conflict.is_error for conflict in self.conflicts)

    @property
    def errors(self) -> List[Conflict]:
        return [conflict for conflict in self.conflicts if conflict.is_error]

    @property
    def warnings(self) -> List[Conflict]:
        return [conflict for conflict in self.conflicts if not conflict.is_error]


def profile_counter(profile: Sequence[NameCount]) -> Counter:
    return Counter((entry.name, entry.count) for entry in profile)


def _profiles_equal(left: Sequence[NameCount], right: Sequence[NameCount]) -> bool:
    return profile_counter(left) == profile_counter(right)


def _profile_evidence(profile: Sequence[NameCount]) -> List[dict]:
    return [
        {"name": name, "count": count}
        for (name, count) in sorted(profile_counter(profile).elements())
    ]


class ConflictDetector:
    """Compares every non-first group member against the first member."""

    def __init__(self, *, line_count_tolerance: int = 0) -> None:
        if line_count_tolerance < 0:
            raise ValueError("line_count_tolerance must not be negative")
        self.line_count_tolerance = line_count_tolerance
        self.logger = get_logger("resolution.conflicts")
        self._dimensions = self._build_dimensions()

    def _build_dimensions(self) -> tuple[_Dimension, ...]:
        tolerance = self.line_count_tolerance
        return (
            _Dimension(
                kind=ConflictKind.ROLE_MISMATCH,
                severity=Severity.ERROR,
                applies_to=_ALL_KINDS,
                describe="has conflicting inferred roles",
                value=lambda member: member.analysis.role or "unknown",
                equal=lambda a, b: a == b,
            ),
            _Dimension(
                kind=ConflictKind.STRUCTURAL_FORM_MISMATCH,
                severity=Severity.ERROR,
                applies_to=frozenset({EntityKind.COMPONENT}),
                describe="has conflicting structural forms",
                value=lambda member: member.candidate.attributes.form,
                equal=lambda a, b: a == b,
            ),
            _Dimension(
                kind=ConflictKind.LINE_COUNT_DIFFERENCE,
                severity=Severity.WARNING,
                applies_to=_ALL_KINDS,
                describe="has different line counts",
                value=lambda member: member.analysis.lines_of_code,
                equal=lambda a, b: abs(a - b) <= tolerance,
            ),
            _Dimension(
                kind=ConflictKind.MARKUP_PROFILE_MISMATCH,
                severity=Severity.WARNING,
                applies_to=frozenset({EntityKind.COMPONENT}),
                describe="renders different markup elements",
                value=lambda member: member.analysis.markup_usage,
                equal=_profiles_equal,
            ),
            _Dimension(
                kind=ConflictKind.ACCESSOR_PROFILE_MISMATCH,
                severity=Severity.WARNING,
                applies_to=frozenset({EntityKind.COMPONENT, EntityKind.STATE_ACCESSOR}),
                describe="uses different state accessors",
                value=lambda member: member.analysis.state_accessor_usage,
                equal=_profiles_equal,
            ),
            _Dimension(
                kind=ConflictKind.WRAPPER_MISMATCH,
                severity=Severity.WARNING,
                applies_to=frozenset({EntityKind.COMPONENT}),
                describe="is wrapped by different wrappers",
                value=lambda member: tuple(sorted(set(member.candidate.attributes.wrappers))),
                equal=lambda a, b: a == b,
            ),
            _Dimension(
                kind=ConflictKind.CONTAINER_KIND_MISMATCH,
                severity=Severity.WARNING,
                applies_to=frozenset({EntityKind.CONTAINER}),
                describe="has different container site kinds",
                value=lambda member: member.candidate.attributes.container_sites,
                equal=lambda a, b: a == b,
            ),
        )

    def detect(
        self, group: EntityGroup, analyses: Mapping[FileKey, FileAnalysis]
    ) -> DetectionResult:
        """Return every conflict for `group`; raises MissingAnalysisError."""
        members = [self._member(candidate, analyses) for candidate in group.members]
        if len(members) < 2:
            return DetectionResult()

        reference = members[0]
        conflicts: List[Conflict] = []
        for current in members[1:]:
            for dimension in self._dimensions:
                if group.kind not in dimension.applies_to:
                    continue
                conflict = self._compare(group, dimension, reference, current)
                if conflict is not None:
                    conflicts.append(conflict)

        result = DetectionResult(conflicts=tuple(conflicts))
        if conflicts:
            self.logger.debug(
                "%s %s: %d conflicts (%d errors)",
                group.kind.value,
                group.name,
                len(conflicts),
                len(result.errors),
            )
        return result

    @staticmethod
    def _member(candidate: EntityCandidate, analyses: Mapping[FileKey, FileAnalysis]) -> _Member:
        analysis = analyses.get(candidate.source)
        if analysis is None:
            raise MissingAnalysisError(candidate.source)
        return _Member(candidate=candidate, analysis=analysis)

    def _compare(
        self,
        group: EntityGroup,
        dimension: _Dimension,
        reference: _Member,
        current: _Member,
    ) -> Optional[Conflict]:
        expected = dimension.value(reference)
        actual = dimension.value(current)
        if dimension.equal(expected, actual):
            return None

        reference_file = str(reference.candidate.source)
        current_file = str(current.candidate.source)
        label = _KIND_LABELS[group.kind]
        return Conflict(
            kind=dimension.kind,
            severity=dimension.severity,
            message=f'Shared {label} "{group.name}" {dimension.describe}.',
            evidence={
                "reference": {"file": reference_file, "value": _evidence_value(expected)},
                "member": {"file": current_file, "value": _evidence_value(actual)},
            },
            implicated_files=(reference_file, current_file),
        )


def _evidence_value(value: Any) -> Any:
    if isinstance(value, list) and all(isinstance(item, NameCount) for item in value):
        return _profile_evidence(value)
    if isinstance(value, tuple):
        return list(value)
    return value


__all__ = ["ConflictDetector", "DetectionResult", "profile_counter"]
