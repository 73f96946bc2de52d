"""Tests for pairwise structural conflict detection."""

from __future__ import annotations

from typing import Tuple

import pytest

from fusion.errors import MissingAnalysisError
from fusion.models import ConflictKind, EntityKind, FileKey, Severity, index_snapshot
from fusion.resolution import ConflictDetector, DetectionResult, EntityAggregator

from tests._fixtures.snapshot_builder import SnapshotBuilder


def _detect(
    builder: SnapshotBuilder,
    key: Tuple[EntityKind, str],
    detector: ConflictDetector | None = None,
) -> DetectionResult:
    projects = builder.projects()
    groups = EntityAggregator().aggregate(projects)
    return (detector or ConflictDetector()).detect(groups[key], index_snapshot(projects))


def test_single_member_group_has_no_conflicts(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.component("web", "src/Button.tsx", "Button", form="class")

    result = _detect(snapshot_builder, (EntityKind.COMPONENT, "Button"))

    assert result.conflicts == ()
    assert result.mergeable is True


def test_structural_form_mismatch_is_an_error(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.component("p1", "src/Button.tsx", "Button", form="functional")
    snapshot_builder.component("p2", "src/Button.tsx", "Button", form="class")

    result = _detect(snapshot_builder, (EntityKind.COMPONENT, "Button"))

    assert [conflict.kind for conflict in result.conflicts] == [ConflictKind.STRUCTURAL_FORM_MISMATCH]
    conflict = result.conflicts[0]
    assert conflict.severity is Severity.ERROR
    assert conflict.implicated_files == ("p1:src/Button.tsx", "p2:src/Button.tsx")
    assert conflict.evidence["reference"] == {"file": "p1:src/Button.tsx", "value": "functional"}
    assert conflict.evidence["member"] == {"file": "p2:src/Button.tsx", "value": "class"}
    assert "Button" in conflict.message
    assert result.mergeable is False


def test_role_mismatch_is_an_error(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate", role="util")
    snapshot_builder.utility("p2", "src/date.ts", "formatDate", role="api")

    result = _detect(snapshot_builder, (EntityKind.UTILITY, "formatDate"))

    assert [conflict.kind for conflict in result.errors] == [ConflictKind.ROLE_MISMATCH]
    assert result.warnings == []
    assert result.mergeable is False


def test_line_count_difference_is_a_warning(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate", loc=10)
    snapshot_builder.utility("p2", "src/date.ts", "formatDate", loc=12)

    result = _detect(snapshot_builder, (EntityKind.UTILITY, "formatDate"))

    assert [conflict.kind for conflict in result.warnings] == [ConflictKind.LINE_COUNT_DIFFERENCE]
    assert result.mergeable is True


@pytest.mark.parametrize(("tolerance", "expected"), [(1, 1), (2, 0)])
def test_line_count_tolerance_is_configurable(
    snapshot_builder: SnapshotBuilder, tolerance: int, expected: int
) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate", loc=10)
    snapshot_builder.utility("p2", "src/date.ts", "formatDate", loc=12)

    result = _detect(
        snapshot_builder,
        (EntityKind.UTILITY, "formatDate"),
        ConflictDetector(line_count_tolerance=tolerance),
    )

    assert len(result.conflicts) == expected


def test_negative_tolerance_is_rejected() -> None:
    with pytest.raises(ValueError):
        ConflictDetector(line_count_tolerance=-1)


def test_markup_profile_is_order_independent(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.component(
        "p1", "src/Card.tsx", "Card", markup_usage=[{"name": "div", "count": 2}, {"name": "span", "count": 1}]
    )
    snapshot_builder.component(
        "p2", "src/Card.tsx", "Card", markup_usage=[{"name": "span", "count": 1}, {"name": "div", "count": 2}]
    )
    snapshot_builder.component("p3", "src/Card.tsx", "Card", markup={"div": 3, "span": 1})

    result = _detect(snapshot_builder, (EntityKind.COMPONENT, "Card"))

    assert [conflict.kind for conflict in result.conflicts] == [ConflictKind.MARKUP_PROFILE_MISMATCH]
    assert result.conflicts[0].severity is Severity.WARNING
    assert result.conflicts[0].implicated_files == ("p1:src/Card.tsx", "p3:src/Card.tsx")
    assert result.conflicts[0].evidence["member"]["value"] == [
        {"name": "div", "count": 3},
        {"name": "span", "count": 1},
    ]


def test_wrapper_chains_compare_as_sets(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.component("p1", "src/Nav.tsx", "Nav", wrappers=["withRouter", "memo"])
    snapshot_builder.component("p2", "src/Nav.tsx", "Nav", wrappers=["memo", "withRouter"])
    snapshot_builder.component("p3", "src/Nav.tsx", "Nav", wrappers=["memo"])

    result = _detect(snapshot_builder, (EntityKind.COMPONENT, "Nav"))

    assert [conflict.kind for conflict in result.conflicts] == [ConflictKind.WRAPPER_MISMATCH]
    assert result.conflicts[0].evidence["reference"]["value"] == ["memo", "withRouter"]


def test_accessor_profiles_compare_for_state_accessors(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.accessor("p1", "src/hooks/useCart.ts", "useCart", uses=1)
    snapshot_builder.accessor("p2", "src/hooks/useCart.ts", "useCart", uses=2)

    result = _detect(snapshot_builder, (EntityKind.STATE_ACCESSOR, "useCart"))

    assert [conflict.kind for conflict in result.conflicts] == [ConflictKind.ACCESSOR_PROFILE_MISMATCH]
    assert result.mergeable is True


def test_container_site_kinds_are_compared(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.add(
        "p1",
        "src/context/Cart.tsx",
        containers=[{"name": "CartContext"}, {"name": "CartContext", "site": "provider"}],
    )
    snapshot_builder.add("p2", "src/context/Cart.tsx", containers=[{"name": "CartContext"}])

    result = _detect(snapshot_builder, (EntityKind.CONTAINER, "CartContext"))

    assert [conflict.kind for conflict in result.conflicts] == [ConflictKind.CONTAINER_KIND_MISMATCH]
    assert result.conflicts[0].evidence["member"]["value"] == ["definition"]


def test_utilities_ignore_markup_profiles(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate", markup_usage={"div": 1})
    snapshot_builder.utility("p2", "src/date.ts", "formatDate", markup_usage={"span": 4})

    result = _detect(snapshot_builder, (EntityKind.UTILITY, "formatDate"))

    assert result.conflicts == ()


def test_every_member_is_compared_against_the_first(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate", role="util")
    snapshot_builder.utility("p2", "src/date.ts", "formatDate", role="api")
    snapshot_builder.utility("p3", "src/date.ts", "formatDate", role="api")

    result = _detect(snapshot_builder, (EntityKind.UTILITY, "formatDate"))

    assert [conflict.implicated_files for conflict in result.conflicts] == [
        ("p1:src/date.ts", "p2:src/date.ts"),
        ("p1:src/date.ts", "p3:src/date.ts"),
    ]


def test_missing_analysis_raises(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate")
    snapshot_builder.utility("p2", "src/date.ts", "formatDate")
    projects = snapshot_builder.projects()
    group = EntityAggregator().aggregate(projects)[(EntityKind.UTILITY, "formatDate")]
    analyses = index_snapshot(projects)
    del analyses[FileKey("p2", "src/date.ts")]

    with pytest.raises(MissingAnalysisError) as excinfo:
        ConflictDetector().detect(group, analyses)

    assert excinfo.value.key == FileKey("p2", "src/date.ts")
