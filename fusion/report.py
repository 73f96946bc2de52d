"""JSON-ready views of resolution results, graphs and merge plans."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from .graph import DependencyGraph
from .models import Conflict, EntityKind, FileKey
from .orchestrator import FusionRun
from .planning import MergeOutcome, MergePlan, MergeReport
from .resolution import ResolutionResult, ResolvedEntity


def conflict_to_dict(conflict: Conflict) -> Dict[str, Any]:
    return {
        "kind": conflict.kind.value,
        "severity": conflict.severity.value,
        "message": conflict.message,
        "evidence": conflict.evidence,
        "implicatedFiles": list(conflict.implicated_files),
    }


def entity_to_dict(entity: ResolvedEntity) -> Dict[str, Any]:
    return {
        "unifiedId": entity.unified_id,
        "unifiedPath": entity.unified_path,
        "name": entity.name,
        "kind": entity.kind.value,
        "isShared": entity.is_shared,
        "mergeable": entity.mergeable,
        "members": [str(member) for member in entity.members],
        "conflicts": [conflict_to_dict(conflict) for conflict in entity.conflicts],
        "aggregatedAttributes": entity.aggregated_attributes,
    }


def resolution_to_dict(result: ResolutionResult) -> Dict[str, Any]:
    return {
        "entities": {
            kind.value: [entity_to_dict(entity) for entity in result.entities.get(kind, [])]
            for kind in EntityKind
        },
        "report": {
            "criticalErrors": [conflict_to_dict(item) for item in result.report.critical_errors],
            "warnings": [conflict_to_dict(item) for item in result.report.warnings],
            "totalConflicts": result.report.total_conflicts,
        },
        "failures": [
            {"kind": failure.kind.value, "name": failure.name, "reason": failure.reason}
            for failure in result.failures
        ],
        "summary": asdict(result.summary),
    }


def graph_to_dict(graph: DependencyGraph) -> Dict[str, Any]:
    return {
        "project": graph.project,
        "nodes": [
            {
                "id": node.id,
                "role": node.role.value,
                "linesOfCode": node.lines_of_code,
                "isEntryFile": node.is_entry_file,
                "declarationCounts": dict(node.declaration_counts),
            }
            for node in graph.nodes
        ],
        "edges": [
            {
                "from": edge.source,
                "to": edge.target,
                "kind": edge.kind.value,
                "weight": edge.weight,
                "referencedNames": list(edge.referenced_names),
            }
            for edge in graph.edges
        ],
        "unresolvedImports": [
            {"from": item.importer, "specifier": item.specifier, "reason": item.reason}
            for item in graph.unresolved_imports
        ],
        "totalNodes": graph.total_nodes,
        "totalEdges": graph.total_edges,
    }


def graphs_to_dict(graphs: Mapping[str, DependencyGraph]) -> Dict[str, Any]:
    return {name: graph_to_dict(graph) for name, graph in graphs.items()}


def plan_to_dict(plan: MergePlan) -> Dict[str, Any]:
    return {
        "unifiedId": plan.unified_id,
        "unifiedPath": plan.unified_path,
        "name": plan.name,
        "kind": plan.kind.value,
        "decision": plan.decision.value,
        "dominantSource": _file_key(plan.dominant_source),
        "combinationSources": [str(source) for source in plan.combination_sources],
        "initialQualityScore": plan.initial_quality_score,
        "manualReviewRequired": plan.manual_review_required,
        "reasons": [conflict_to_dict(conflict) for conflict in plan.reasons],
        "warnings": [conflict_to_dict(conflict) for conflict in plan.warnings],
    }


def outcome_to_dict(outcome: MergeOutcome) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "unifiedId": outcome.unified_id,
        "status": outcome.status.value,
        "lineCount": outcome.line_count,
        "resolvedConflicts": [conflict_to_dict(item) for item in outcome.resolved_conflicts],
    }
    if outcome.detail:
        payload["detail"] = outcome.detail
    return payload


def merge_report_to_dict(report: MergeReport) -> Dict[str, Any]:
    return {
        "outcomes": [outcome_to_dict(outcome) for outcome in report.outcomes],
        "summary": asdict(report.summary),
    }


def run_to_dict(run: FusionRun) -> Dict[str, Any]:
    payload = resolution_to_dict(run.resolution)
    payload["graphs"] = graphs_to_dict(run.graphs)
    payload["plans"] = plans_to_list(run.plans)
    return payload


def plans_to_list(plans: List[MergePlan]) -> List[Dict[str, Any]]:
    return [plan_to_dict(plan) for plan in plans]


def _file_key(key: Optional[FileKey]) -> Optional[str]:
    return str(key) if key is not None else None


__all__ = [
    "conflict_to_dict",
    "entity_to_dict",
    "graph_to_dict",
    "graphs_to_dict",
    "merge_report_to_dict",
    "outcome_to_dict",
    "plan_to_dict",
    "plans_to_list",
    "resolution_to_dict",
    "run_to_dict",
]
