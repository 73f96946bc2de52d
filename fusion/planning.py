"""Merge planning and the hand-off contract to content mergers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence

from .logging import get_logger
from .models import Conflict, EntityKind, FileKey
from .resolution.resolver import ResolvedEntity


class PlanDecision(str, Enum):
    PROCEED = "proceed"
    SKIP = "skip"


class MergeStatus(str, Enum):
    MERGED = "merged"
    MERGED_WITH_WARNINGS = "merged-with-warnings"
    ERROR = "error"


@dataclass(frozen=True)
class MergePlan:
    """Everything a content merger needs to know about one entity."""

    unified_id: str
    unified_path: str
    name: str
    kind: EntityKind
    decision: PlanDecision
    dominant_source: Optional[FileKey] = None
    combination_sources: tuple[FileKey, ...] = ()
    initial_quality_score: int = 0
    manual_review_required: bool = True
    reasons: tuple[Conflict, ...] = ()
    warnings: tuple[Conflict, ...] = ()

    @property
    def proceeds(self) -> bool:
        return self.decision is PlanDecision.PROCEED

    @property
    def sources(self) -> List[FileKey]:
        if self.dominant_source is None:
            return []
        return [self.dominant_source, *self.combination_sources]


@dataclass(frozen=True)
class MergeOutcome:
    """What a content merger returns for one plan."""

    unified_id: str
    text: str
    status: MergeStatus
    resolved_conflicts: tuple[Conflict, ...] = ()
    line_count: int = 0
    detail: Optional[str] = None


class ContentMerger(Protocol):
    """Combines the raw texts named by a plan into one body."""

    def merge(self, plan: MergePlan, texts: Mapping[str, str]) -> MergeOutcome:
        """Return the merged text for `plan`; `texts` is keyed by `project:path`."""


class MergeDecisionCoordinator:
    """Turns resolved entities into proceed/skip merge plans."""

    def __init__(
        self,
        *,
        base_score: int = 100,
        warning_penalty: int = 5,
        review_threshold: int = 70,
    ) -> None:
        self.base_score = base_score
        self.warning_penalty = warning_penalty
        self.review_threshold = review_threshold
        self.logger = get_logger("planning")

    def plan(self, entity: ResolvedEntity) -> MergePlan:
        if not entity.mergeable:
            self.logger.debug("Skipping %s: %d blocking conflicts", entity.unified_id, len(entity.errors))
            return MergePlan(
                unified_id=entity.unified_id,
                unified_path=entity.unified_path,
                name=entity.name,
                kind=entity.kind,
                decision=PlanDecision.SKIP,
                reasons=tuple(entity.errors),
                warnings=tuple(entity.warnings),
            )

        warnings = tuple(entity.warnings)
        score = max(0, self.base_score - self.warning_penalty * len(warnings))
        dominant, *rest = entity.members
        return MergePlan(
            unified_id=entity.unified_id,
            unified_path=entity.unified_path,
            name=entity.name,
            kind=entity.kind,
            decision=PlanDecision.PROCEED,
            dominant_source=dominant,
            combination_sources=tuple(rest),
            initial_quality_score=score,
            manual_review_required=score < self.review_threshold or bool(entity.conflicts),
            warnings=warnings,
        )

    def plan_all(self, entities: Iterable[ResolvedEntity]) -> List[MergePlan]:
        plans = [self.plan(entity) for entity in entities]
        skipped = sum(1 for plan in plans if not plan.proceeds)
        self.logger.info("Planned %d merges (%d skipped)", len(plans) - skipped, skipped)
        return plans


class DominantSourceMerger:
    """Keeps the dominant source text unchanged and reports plan warnings as resolved."""

    def merge(self, plan: MergePlan, texts: Mapping[str, str]) -> MergeOutcome:
        if plan.dominant_source is None:
            raise ValueError(f"Plan {plan.unified_id} has no dominant source")
        text = texts[str(plan.dominant_source)]
        status = MergeStatus.MERGED_WITH_WARNINGS if plan.warnings else MergeStatus.MERGED
        return MergeOutcome(
            unified_id=plan.unified_id,
            text=text,
            status=status,
            resolved_conflicts=plan.warnings,
            line_count=len(text.splitlines()),
        )


@dataclass
class MergeSummary:
    attempted: int = 0
    merged: int = 0
    merged_with_warnings: int = 0
    skipped: int = 0
    failed: int = 0
    total_line_count: int = 0
    auto_resolved_conflicts: int = 0
    needs_review: List[str] = field(default_factory=list)


@dataclass
class MergeReport:
    outcomes: List[MergeOutcome]
    summary: MergeSummary

    def outcome(self, unified_id: str) -> Optional[MergeOutcome]:
        return next((item for item in self.outcomes if item.unified_id == unified_id), None)


def execute(
    plans: Sequence[MergePlan],
    texts: Mapping[str, str],
    merger: Optional[ContentMerger] = None,
) -> MergeReport:
    """Hand every `proceed` plan to `merger`; failures stay local to their entity."""
    logger = get_logger("planning.execute")
    merger = merger or DominantSourceMerger()
    outcomes: List[MergeOutcome] = []
    summary = MergeSummary()

    for plan in plans:
        if not plan.proceeds:
            summary.skipped += 1
            continue
        summary.attempted += 1
        if plan.manual_review_required:
            summary.needs_review.append(plan.unified_id)

        if plan.dominant_source is None or str(plan.dominant_source) not in texts:
            logger.error("No source text for %s (%s)", plan.unified_id, plan.dominant_source)
            outcome = _error_outcome(plan, f"Missing source text for {plan.dominant_source}")
        else:
            try:
                outcome = merger.merge(plan, texts)
            except Exception as exc:
                _log_exception(logger, f"Content merge failed for {plan.unified_id}", exc)
                outcome = _error_outcome(plan, str(exc))

        outcomes.append(outcome)
        if outcome.status is MergeStatus.ERROR:
            summary.failed += 1
            continue
        if outcome.status is MergeStatus.MERGED_WITH_WARNINGS:
            summary.merged_with_warnings += 1
        else:
            summary.merged += 1
        summary.total_line_count += outcome.line_count
        summary.auto_resolved_conflicts += len(outcome.resolved_conflicts)

    logger.info(
        "Merged %d of %d entities (%d with warnings, %d failed, %d skipped)",
        summary.merged + summary.merged_with_warnings,
        summary.attempted,
        summary.merged_with_warnings,
        summary.failed,
        summary.skipped,
    )
    return MergeReport(outcomes=outcomes, summary=summary)


def _error_outcome(plan: MergePlan, detail: str) -> MergeOutcome:
    return MergeOutcome(unified_id=plan.unified_id, text="", status=MergeStatus.ERROR, detail=detail)


def _log_exception(logger: logging.Logger, message: str, exc: Exception) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.exception("%s: %s", message, exc)
    else:
        logger.error("%s: %s", message, exc)


__all__ = [
    "ContentMerger",
    "DominantSourceMerger",
    "MergeDecisionCoordinator",
    "MergeOutcome",
    "MergePlan",
    "MergeReport",
    "MergeStatus",
    "MergeSummary",
    "PlanDecision",
    "execute",
]
