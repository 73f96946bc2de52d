"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fusion.cli import _build_parser, main

from tests._fixtures.snapshot_builder import SnapshotBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "resolve", "snapshot.json"])
    assert args.verbose is True
    assert args.command == "resolve"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["graph", "snapshot.json", "--verbose"])
    assert args.verbose is True
    assert args.command == "graph"


def test_cli_accepts_plan_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["plan", "snapshot.json", "--config", "conf", "--tsconfig", "tsconfig.json", "-o", "out.json"]
    )
    assert args.snapshot == "snapshot.json"
    assert args.config == "conf"
    assert args.tsconfig == "tsconfig.json"
    assert args.output == "out.json"


def test_resolve_rejects_tsconfig() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["resolve", "snapshot.json", "--tsconfig", "tsconfig.json"])


def test_resolve_prints_json_report(
    snapshot_builder: SnapshotBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    snapshot_builder.component("p1", "src/Button.tsx", "Button")
    snapshot_builder.component("p2", "src/Button.tsx", "Button", form="class")
    path = snapshot_builder.write()

    main(["resolve", str(path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["report"]["totalConflicts"] == 1
    button = payload["entities"]["component"][0]
    assert button["unifiedId"] == "component:button"
    assert button["mergeable"] is False


def test_plan_writes_output_file(snapshot_builder: SnapshotBuilder, tmp_path: Path) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate")
    snapshot_builder.utility("p2", "src/date.ts", "formatDate")
    path = snapshot_builder.write()
    output = tmp_path / "reports" / "plan.json"

    main(["plan", str(path), "--output", str(output)])

    payload = json.loads(output.read_text(encoding="utf-8"))
    (plan,) = payload["plans"]
    assert plan["decision"] == "proceed"
    assert plan["dominantSource"] == "p1:src/date.ts"
    assert plan["combinationSources"] == ["p2:src/date.ts"]


def test_graph_prints_graphs_per_project(
    snapshot_builder: SnapshotBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    snapshot_builder.add("p1", "a.tsx", imports=[{"source": "./b"}])
    snapshot_builder.add("p1", "b.ts")
    path = snapshot_builder.write()

    main(["graph", str(path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["p1"]["edges"] == [
        {"from": "a.tsx", "to": "b.ts", "kind": "import", "weight": 1, "referencedNames": ["default"]}
    ]


def test_missing_snapshot_exits_with_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["resolve", str(tmp_path / "absent.json")])

    assert excinfo.value.code == 1


def test_invalid_config_exits_with_error(snapshot_builder: SnapshotBuilder) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate")
    path = snapshot_builder.write()
    snapshot_builder.write_config("- not\n- a mapping\n")

    with pytest.raises(SystemExit) as excinfo:
        main(["resolve", str(path)])

    assert excinfo.value.code == 1


def test_log_options_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["plan", "snapshot.json", "-q", "--log-file", "run.log"])
    assert args.quiet is True
    assert args.verbose is False
    assert args.log_file == "run.log"


def test_log_file_captures_run(snapshot_builder: SnapshotBuilder, tmp_path: Path) -> None:
    snapshot_builder.utility("p1", "src/date.ts", "formatDate")
    path = snapshot_builder.write()
    log_file = tmp_path / "fusion.log"

    main(["--quiet", "--log-file", str(log_file), "resolve", str(path)])

    assert "Loaded 1 projects" in log_file.read_text(encoding="utf-8")
