"""Core data models shared across fusion components."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence


class EntityKind(str, Enum):
    """Closed set of unit kinds tracked across projects."""

    COMPONENT = "component"
    STATE_ACCESSOR = "state_accessor"
    CONTAINER = "container"
    UTILITY = "utility"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ConflictKind(str, Enum):
    """Taxonomy of structural differences between same-named units."""

    ROLE_MISMATCH = "role-mismatch"
    STRUCTURAL_FORM_MISMATCH = "structural-form-mismatch"
    LINE_COUNT_DIFFERENCE = "line-count-difference"
    MARKUP_PROFILE_MISMATCH = "markup-profile-mismatch"
    ACCESSOR_PROFILE_MISMATCH = "accessor-profile-mismatch"
    WRAPPER_MISMATCH = "wrapper-mismatch"
    CONTAINER_KIND_MISMATCH = "container-kind-mismatch"


class FileKey(NamedTuple):
    """Identifies a file across every input project."""

    project: str
    path: str

    def __str__(self) -> str:
        return f"{self.project}:{self.path}"


@dataclass(frozen=True)
class NameCount:
    """A usage profile entry: how often a name occurs in a file."""

    name: str
    count: int


@dataclass(frozen=True)
class ComponentDecl:
    """A UI-producing declaration site reported by the structural analyzer."""

    name: str
    exported: bool = False
    form: str = "functional"
    produces_markup: bool = True
    wrappers: tuple[str, ...] = ()


@dataclass(frozen=True)
class Declaration:
    """A plain function or variable declaration."""

    name: str
    exported: bool = False


@dataclass(frozen=True)
class ContainerSite:
    """A definition, provider or consumer site of a shared-state container."""

    name: str
    site: str = "definition"


@dataclass(frozen=True)
class ImportRecord:
    """A single imported binding."""

    source: str
    name: str = "default"
    imported_as: Optional[str] = None
    dynamic: bool = False

    @property
    def local_name(self) -> str:
        return self.imported_as or self.name


@dataclass(frozen=True)
class ExportRecord:
    name: str
    kind: str = "variable"


@dataclass(frozen=True)
class TypeDecl:
    name: str
    exported: bool = False


@dataclass
class FileAnalysis:
    """Structural facts extracted upstream for one source file."""

    path: str
    role: Optional[str] = None
    kind_hints: List[str] = field(default_factory=list)
    components: List[ComponentDecl] = field(default_factory=list)
    functions: List[Declaration] = field(default_factory=list)
    variables: List[Declaration] = field(default_factory=list)
    containers: List[ContainerSite] = field(default_factory=list)
    imports: List[ImportRecord] = field(default_factory=list)
    exports: List[ExportRecord] = field(default_factory=list)
    markup_usage: List[NameCount] = field(default_factory=list)
    state_accessor_usage: List[NameCount] = field(default_factory=list)
    declared_types: List[TypeDecl] = field(default_factory=list)
    type_references: List[NameCount] = field(default_factory=list)
    lines_of_code: int = 0

    @property
    def extension(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        if "." not in name.lstrip("."):
            return ""
        return "." + name.rsplit(".", 1)[-1].lower()

    def component(self, name: str) -> Optional[ComponentDecl]:
        return next((comp for comp in self.components if comp.name == name), None)

    def exports_callable(self, name: str) -> bool:
        """Return True when `name` is exported as a function or variable."""
        return any(exp.name == name and exp.kind in {"function", "variable"} for exp in self.exports)

    def container_sites(self, name: str) -> tuple[str, ...]:
        return tuple(sorted({site.site for site in self.containers if site.name == name}))


@dataclass
class ProjectAnalysis:
    """All file analyses of one input project, in directory traversal order."""

    name: str
    files: List[FileAnalysis] = field(default_factory=list)


@dataclass(frozen=True)
class Conflict:
    """A single structural difference detected between two group members."""

    kind: ConflictKind
    severity: Severity
    message: str
    evidence: Dict[str, Any] = field(default_factory=dict, hash=False, compare=True)
    implicated_files: tuple[str, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


def unique_files(project: ProjectAnalysis, logger: logging.Logger | None = None) -> ProjectAnalysis:
    """Keep the first analysis recorded for each path of `project`."""
    seen: set[str] = set()
    files: List[FileAnalysis] = []
    for analysis in project.files:
        if analysis.path in seen:
            if logger is not None:
                logger.warning("Duplicate analysis for %s:%s ignored", project.name, analysis.path)
            continue
        seen.add(analysis.path)
        files.append(analysis)
    if len(files) == len(project.files):
        return project
    return ProjectAnalysis(name=project.name, files=files)


def index_snapshot(projects: Sequence[ProjectAnalysis]) -> Dict[FileKey, FileAnalysis]:
    """Return a lookup of every file analysis keyed by project and path."""
    lookup: Dict[FileKey, FileAnalysis] = {}
    for project in projects:
        for analysis in project.files:
            lookup.setdefault(FileKey(project.name, analysis.path), analysis)
    return lookup


__all__ = [
    "ComponentDecl",
    "Conflict",
    "ConflictKind",
    "ContainerSite",
    "Declaration",
    "EntityKind",
    "ExportRecord",
    "FileAnalysis",
    "FileKey",
    "ImportRecord",
    "NameCount",
    "ProjectAnalysis",
    "Severity",
    "TypeDecl",
    "index_snapshot",
    "unique_files",
]
