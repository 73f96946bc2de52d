"""Configuration loading for fusion (.fusion.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import FusionError

CONFIG_FILENAME = ".fusion.yml"

DEFAULT_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".json",
    ".css",
    ".scss",
    ".less",
    ".png",
    ".svg",
)
DEFAULT_ROOT_PREFIXES = ("", "src")
DEFAULT_ALIAS_SIGILS = ("@/", "~/")
DEFAULT_ENTRY_FILES = (
    "src/index.tsx",
    "src/index.jsx",
    "src/main.tsx",
    "src/main.jsx",
    "app/layout.tsx",
    "app/page.tsx",
    "pages/_app.tsx",
    "pages/index.tsx",
)


class ConfigError(FusionError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ConflictConfig:
    """Conflict detection thresholds."""

    line_count_tolerance: int = 0


@dataclass
class PlanningConfig:
    """Merge plan scoring."""

    base_score: int = 100
    warning_penalty: int = 5
    review_threshold: int = 70


@dataclass
class IdentityConfig:
    """Destination layout for unified entities."""

    base_dir: str = "merged"
    extension: str = ".ts"


@dataclass
class GraphConfig:
    """Import resolution settings for dependency graphs."""

    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    root_prefixes: List[str] = field(default_factory=lambda: list(DEFAULT_ROOT_PREFIXES))
    alias_sigils: List[str] = field(default_factory=lambda: list(DEFAULT_ALIAS_SIGILS))
    aliases: Dict[str, List[str]] = field(default_factory=dict)
    entry_files: List[str] = field(default_factory=lambda: list(DEFAULT_ENTRY_FILES))


@dataclass
class ExecutionConfig:
    """Parallelism for per-group and per-project work."""

    max_workers: int = 1


@dataclass
class FusionConfig:
    """Represents the high-level settings defined in .fusion.yml."""

    root: Path
    classifier: str = "heuristic"
    conflicts: ConflictConfig = field(default_factory=ConflictConfig)
    planning: PlanningConfig = field(default_factory=PlanningConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)


def load_config(config_path: Path) -> FusionConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return FusionConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = FusionConfig(root=root)
    config.classifier = _as_str(data.get("classifier")) or config.classifier

    conflict_data = _as_dict(data.get("conflicts"))
    tolerance = _as_int(conflict_data.get("line_count_tolerance"))
    if tolerance is not None:
        if tolerance < 0:
            raise ConfigError("conflicts.line_count_tolerance must not be negative")
        config.conflicts.line_count_tolerance = tolerance

    planning_data = _as_dict(data.get("planning"))
    for key in ("base_score", "warning_penalty", "review_threshold"):
        value = _as_int(planning_data.get(key))
        if value is not None:
            setattr(config.planning, key, value)

    identity_data = _as_dict(data.get("identity"))
    base_dir = _as_str(identity_data.get("base_dir"))
    if base_dir:
        config.identity.base_dir = base_dir.strip("/")
    extension = _as_str(identity_data.get("extension"))
    if extension:
        config.identity.extension = extension if extension.startswith(".") else f".{extension}"

    graph_data = _as_dict(data.get("graph"))
    if "extensions" in graph_data:
        config.graph.extensions = [
            ext if ext.startswith(".") else f".{ext}"
            for ext in _as_str_list(graph_data.get("extensions"))
        ]
    if "root_prefixes" in graph_data:
        config.graph.root_prefixes = [
            prefix.strip("/") for prefix in _as_str_list(graph_data.get("root_prefixes"))
        ]
    if "alias_sigils" in graph_data:
        config.graph.alias_sigils = _as_str_list(graph_data.get("alias_sigils"))
    if "entry_files" in graph_data:
        config.graph.entry_files = _as_str_list(graph_data.get("entry_files"))
    config.graph.aliases = _as_alias_table(graph_data.get("aliases"))

    execution_data = _as_dict(data.get("execution"))
    workers = _as_int(execution_data.get("max_workers"))
    if workers is not None:
        config.execution.max_workers = max(1, workers)

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_alias_table(value: Any) -> Dict[str, List[str]]:
    table: Dict[str, List[str]] = {}
    for key, targets in _as_dict(value).items():
        paths = _as_str_list(targets)
        if paths:
            table[str(key)] = paths
    return table


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
