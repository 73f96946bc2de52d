"""Tests for fusion.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from fusion.config import (
    DEFAULT_ENTRY_FILES,
    DEFAULT_EXTENSIONS,
    ConfigError,
    FusionConfig,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, FusionConfig)
    assert config.root == tmp_path.resolve()
    assert config.classifier == "heuristic"
    assert config.conflicts.line_count_tolerance == 0
    assert (config.planning.base_score, config.planning.warning_penalty) == (100, 5)
    assert config.planning.review_threshold == 70
    assert config.identity.base_dir == "merged"
    assert config.identity.extension == ".ts"
    assert config.graph.extensions == list(DEFAULT_EXTENSIONS)
    assert config.graph.root_prefixes == ["", "src"]
    assert config.graph.alias_sigils == ["@/", "~/"]
    assert config.graph.aliases == {}
    assert config.graph.entry_files == list(DEFAULT_ENTRY_FILES)
    assert config.execution.max_workers == 1


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".fusion.yml"
    config_file.write_text(
        """
classifier: heuristic
conflicts:
  line_count_tolerance: 3
planning:
  base_score: 90
  warning_penalty: 10
  review_threshold: 50
identity:
  base_dir: "out/"
  extension: tsx
graph:
  extensions: [ts, .tsx]
  root_prefixes: ["/src/", app]
  alias_sigils: ["#/"]
  aliases:
    "@components/*": ["src/components/*"]
    "@config": src/config.ts
  entry_files:
    - src/boot.ts
execution:
  max_workers: 4
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.conflicts.line_count_tolerance == 3
    assert config.planning.base_score == 90
    assert config.planning.warning_penalty == 10
    assert config.planning.review_threshold == 50
    assert config.identity.base_dir == "out"
    assert config.identity.extension == ".tsx"
    assert config.graph.extensions == [".ts", ".tsx"]
    assert config.graph.root_prefixes == ["src", "app"]
    assert config.graph.alias_sigils == ["#/"]
    assert config.graph.aliases == {
        "@components/*": ["src/components/*"],
        "@config": ["src/config.ts"],
    }
    assert config.graph.entry_files == ["src/boot.ts"]
    assert config.execution.max_workers == 4


def test_load_config_accepts_directory(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text("execution:\n  max_workers: 2\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.execution.max_workers == 2


def test_load_config_clamps_worker_count(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text("execution:\n  max_workers: 0\n", encoding="utf-8")

    assert load_config(tmp_path).execution.max_workers == 1


def test_load_config_ignores_booleans_for_integers(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text(
        "conflicts:\n  line_count_tolerance: true\n", encoding="utf-8"
    )

    assert load_config(tmp_path).conflicts.line_count_tolerance == 0


def test_load_config_empty_file_returns_defaults(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).classifier == "heuristic"


def test_load_config_rejects_negative_tolerance(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text(
        "conflicts:\n  line_count_tolerance: -1\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".fusion.yml").write_text("graph: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)

    assert ".fusion.yml" in str(excinfo.value)
