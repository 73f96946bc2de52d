"""Tests for the end-to-end entity resolver."""

from __future__ import annotations

import pytest

from fusion.errors import NoEntitiesError
from fusion.models import (
    ComponentDecl,
    EntityKind,
    FileAnalysis,
    FileKey,
    ProjectAnalysis,
    index_snapshot,
)
from fusion.report import resolution_to_dict
from fusion.resolution import EntityAggregator, EntityResolver

from tests._fixtures.snapshot_builder import SnapshotBuilder


def _two_project_fixture(builder: SnapshotBuilder) -> None:
    builder.component("web", "src/Button.tsx", "Button", wrappers=["memo"], loc=10)
    builder.component("admin", "src/Button.tsx", "Button", wrappers=["withTheme", "memo"], loc=20)
    builder.component("admin", "src/Modal.tsx", "Modal", form="class")
    builder.component("web", "src/Modal.tsx", "Modal")
    builder.utility("web", "src/date.ts", "formatDate")
    builder.utility("admin", "src/date.ts", "formatDate")
    builder.accessor("web", "src/hooks/useCart.ts", "useCart")


def test_resolve_groups_entities_by_kind(snapshot_builder: SnapshotBuilder) -> None:
    _two_project_fixture(snapshot_builder)

    result = EntityResolver().resolve(snapshot_builder.projects())

    assert [entity.name for entity in result.entities[EntityKind.COMPONENT]] == ["Button", "Modal"]
    assert [entity.name for entity in result.entities[EntityKind.UTILITY]] == ["formatDate"]
    assert [entity.name for entity in result.entities[EntityKind.STATE_ACCESSOR]] == ["useCart"]
    assert result.entities[EntityKind.CONTAINER] == []

    use_cart = result.find(EntityKind.STATE_ACCESSOR, "useCart")
    assert use_cart is not None
    assert use_cart.is_shared is False
    assert use_cart.mergeable is True
    assert use_cart.unified_id == "state_accessor:usecart"
    assert use_cart.unified_path == "merged/state/usecart.ts"


def test_mergeable_tracks_error_conflicts(snapshot_builder: SnapshotBuilder) -> None:
    _two_project_fixture(snapshot_builder)

    result = EntityResolver().resolve(snapshot_builder.projects())

    for entity in result.all_entities():
        assert entity.mergeable == (not entity.errors)
    modal = result.find(EntityKind.COMPONENT, "Modal")
    assert modal is not None and modal.mergeable is False
    assert modal.members == (FileKey("web", "src/Modal.tsx"), FileKey("admin", "src/Modal.tsx"))


def test_aggregated_attributes(snapshot_builder: SnapshotBuilder) -> None:
    _two_project_fixture(snapshot_builder)

    button = EntityResolver().resolve(snapshot_builder.projects()).find(EntityKind.COMPONENT, "Button")

    assert button is not None
    attributes = button.aggregated_attributes
    assert attributes["role"] == "component"
    assert attributes["form"] == "functional"
    assert attributes["lines_of_code"] == 15
    assert attributes["markup_usage"] == [{"name": "div", "count": 2}]
    assert attributes["wrappers"] == ["memo", "withTheme"]
    assert attributes["original_paths"] == ["web:src/Button.tsx", "admin:src/Button.tsx"]


def test_report_and_summary(snapshot_builder: SnapshotBuilder) -> None:
    _two_project_fixture(snapshot_builder)

    result = EntityResolver().resolve(snapshot_builder.projects())

    # Button: line count and wrapper warnings; Modal: one structural-form error.
    assert len(result.report.critical_errors) == 1
    assert len(result.report.warnings) == 2
    assert result.report.total_conflicts == 3
    assert result.report.has_conflicts is True
    summary = result.summary
    assert summary.total_input_entities == 7
    assert summary.total_groups == 4
    assert summary.total_shared == 3
    assert summary.total_mergeable == 3
    assert summary.critical_errors == 1
    assert summary.warnings == 2
    assert summary.total_failures == 0


def test_no_entities_fails_the_run(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.add("web", "src/internal.ts", functions=[{"name": "helper", "exported": False}])

    with pytest.raises(NoEntitiesError):
        EntityResolver().resolve(snapshot_builder.projects())


def test_missing_analysis_is_local_to_its_entity(snapshot_builder: SnapshotBuilder) -> None:
    _two_project_fixture(snapshot_builder)
    projects = snapshot_builder.projects()
    groups = EntityAggregator().aggregate(projects)
    analyses = index_snapshot(projects)
    del analyses[FileKey("admin", "src/date.ts")]

    result = EntityResolver().resolve_groups(groups, analyses)

    assert [(failure.kind, failure.name) for failure in result.failures] == [
        (EntityKind.UTILITY, "formatDate")
    ]
    assert result.find(EntityKind.UTILITY, "formatDate") is None
    assert result.find(EntityKind.COMPONENT, "Button") is not None
    assert result.summary.total_failures == 1


def test_parallel_resolution_matches_sequential(snapshot_builder: SnapshotBuilder) -> None:
    _two_project_fixture(snapshot_builder)
    projects = snapshot_builder.projects()

    sequential = resolution_to_dict(EntityResolver().resolve(projects))
    parallel = resolution_to_dict(EntityResolver(max_workers=4).resolve(projects))

    assert parallel == sequential


def test_every_group_failing_fails_the_run(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("web", "src/date.ts", "formatDate")
    snapshot_builder.utility("admin", "src/date.ts", "formatDate")
    groups = EntityAggregator().aggregate(snapshot_builder.projects())

    with pytest.raises(NoEntitiesError, match="utility formatDate"):
        EntityResolver().resolve_groups(groups, {})


def test_duplicate_paths_keep_the_first_analysis() -> None:
    button = ComponentDecl(name="Button", exported=True)
    project = ProjectAnalysis(
        name="p1",
        files=[
            FileAnalysis(path="Button.tsx", components=[button], lines_of_code=5),
            FileAnalysis(path="Button.tsx", components=[button], lines_of_code=9),
        ],
    )

    result = EntityResolver().resolve([project])

    entity = result.find(EntityKind.COMPONENT, "Button")
    assert entity is not None
    assert entity.members == (FileKey("p1", "Button.tsx"),)
    assert entity.aggregated_attributes["lines_of_code"] == 5
