"""Loading of per-file analysis snapshots produced by the structural analyzer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from .config import _as_alias_table, _as_bool, _as_dict, _as_int, _as_str, _as_str_list
from .errors import SnapshotError
from .logging import get_logger
from .models import (
    ComponentDecl,
    ContainerSite,
    Declaration,
    ExportRecord,
    FileAnalysis,
    ImportRecord,
    NameCount,
    ProjectAnalysis,
    TypeDecl,
    unique_files,
)

logger = get_logger("snapshot")

_CONTAINER_SITES = {"definition", "provider", "consumer"}
_COMPONENT_FORMS = {"functional", "class"}


@dataclass
class Snapshot:
    """An immutable batch of project analyses plus an optional alias table."""

    projects: List[ProjectAnalysis]
    aliases: Dict[str, List[str]] = field(default_factory=dict)


def load_snapshot(path: Path) -> Snapshot:
    """Read a JSON or YAML snapshot file from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"Cannot read snapshot {path}: {exc}") from exc

    try:
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SnapshotError(f"Failed to parse snapshot {path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must contain a mapping at the root")
    return snapshot_from_dict(data)


def snapshot_from_dict(data: Mapping[str, Any]) -> Snapshot:
    projects_payload = data.get("projects")
    if not isinstance(projects_payload, list):
        raise SnapshotError("Snapshot is missing a 'projects' list")
    projects = [
        project_from_dict(payload, position)
        for position, payload in enumerate(projects_payload)
        if isinstance(payload, dict)
    ]
    return Snapshot(projects=projects, aliases=_as_alias_table(data.get("aliases")))


def project_from_dict(payload: Mapping[str, Any], position: int = 0) -> ProjectAnalysis:
    name = _as_str(payload.get("name")) or f"project-{position + 1}"
    files: List[FileAnalysis] = []
    raw_files = payload.get("files")
    for raw in raw_files if isinstance(raw_files, list) else []:
        analysis = analysis_from_dict(raw)
        if analysis is None:
            logger.warning("Dropping analysis record without a path in project %s", name)
            continue
        files.append(analysis)
    return unique_files(ProjectAnalysis(name=name, files=files), logger)


def analysis_from_dict(payload: Any) -> FileAnalysis | None:
    """Coerce one upstream record; returns None when the record has no path."""
    data = _as_dict(payload)
    path = _as_str(data.get("path"))
    if not path:
        return None
    return FileAnalysis(
        path=_normalise_path(path),
        role=_as_str(data.get("role")),
        kind_hints=_as_str_list(data.get("kind_hints")),
        components=[comp for comp in map(_component, _records(data.get("components"))) if comp],
        functions=[decl for decl in map(_declaration, _records(data.get("functions"))) if decl],
        variables=[decl for decl in map(_declaration, _records(data.get("variables"))) if decl],
        containers=[site for site in map(_container, _records(data.get("containers"))) if site],
        imports=[imp for imp in map(_import, _records(data.get("imports"))) if imp],
        exports=[exp for exp in map(_export, _records(data.get("exports"))) if exp],
        markup_usage=_profile(data.get("markup_usage")),
        state_accessor_usage=_profile(data.get("state_accessor_usage")),
        declared_types=[decl for decl in map(_type_decl, _records(data.get("declared_types"))) if decl],
        type_references=_profile(data.get("type_references")),
        lines_of_code=max(0, _as_int(data.get("lines_of_code")) or 0),
    )


def _normalise_path(path: str) -> str:
    normalised = path.replace("\\", "/")
    while normalised.startswith("./"):
        normalised = normalised[2:]
    return normalised


def _records(value: Any) -> Iterable[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _component(data: Dict[str, Any]) -> ComponentDecl | None:
    name = _as_str(data.get("name"))
    if not name:
        return None
    form = _as_str(data.get("form")) or "functional"
    if form not in _COMPONENT_FORMS:
        form = "functional"
    produces_markup = _as_bool(data.get("produces_markup"))
    return ComponentDecl(
        name=name,
        exported=_as_bool(data.get("exported")) or False,
        form=form,
        produces_markup=True if produces_markup is None else produces_markup,
        wrappers=tuple(_as_str_list(data.get("wrappers"))),
    )


def _declaration(data: Dict[str, Any]) -> Declaration | None:
    name = _as_str(data.get("name"))
    if not name:
        return None
    return Declaration(name=name, exported=_as_bool(data.get("exported")) or False)


def _container(data: Dict[str, Any]) -> ContainerSite | None:
    name = _as_str(data.get("name"))
    site = (_as_str(data.get("site")) or "definition").lower()
    if not name or site not in _CONTAINER_SITES:
        return None
    return ContainerSite(name=name, site=site)


def _import(data: Dict[str, Any]) -> ImportRecord | None:
    source = _as_str(data.get("source"))
    if not source:
        return None
    return ImportRecord(
        source=source,
        name=_as_str(data.get("name")) or "default",
        imported_as=_as_str(data.get("imported_as")),
        dynamic=_as_bool(data.get("dynamic")) or False,
    )


def _export(data: Dict[str, Any]) -> ExportRecord | None:
    name = _as_str(data.get("name"))
    if not name:
        return None
    return ExportRecord(name=name, kind=_as_str(data.get("kind")) or "variable")


def _type_decl(data: Dict[str, Any]) -> TypeDecl | None:
    name = _as_str(data.get("name"))
    if not name:
        return None
    return TypeDecl(name=name, exported=_as_bool(data.get("exported")) or False)


def _profile(value: Any) -> List[NameCount]:
    profile: List[NameCount] = []
    if isinstance(value, dict):
        items = [{"name": key, "count": count} for key, count in value.items()]
    else:
        items = list(_records(value))
    for item in items:
        name = _as_str(item.get("name"))
        if not name:
            continue
        count = _as_int(item.get("count"))
        profile.append(NameCount(name=name, count=1 if count is None else count))
    return profile


__all__ = [
    "Snapshot",
    "analysis_from_dict",
    "load_snapshot",
    "project_from_dict",
    "snapshot_from_dict",
]
