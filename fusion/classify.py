"""Pluggable heuristics deciding what kind of unit a declaration site is."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib import metadata
from typing import Callable, Dict, Iterable, Optional

from .models import ComponentDecl, ContainerSite, Declaration, EntityKind, FileAnalysis

_ENTRY_POINT_GROUP = "fusion.classifiers"

_PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_ACCESSOR_NAME = re.compile(r"^use[A-Z0-9]")
_DEFAULT_PLACEHOLDERS = {"default", "defaultExportComponent"}


@dataclass(frozen=True)
class DeclarationSite:
    """A single declaration together with the file it was found in."""

    name: str
    analysis: FileAnalysis
    component: Optional[ComponentDecl] = None
    declaration: Optional[Declaration] = None
    container: Optional[ContainerSite] = None


@dataclass(frozen=True)
class RoleGuess:
    """Outcome of classifying a declaration site; kind is None when untracked."""

    kind: Optional[EntityKind]
    reason: str


class Classifier(ABC):
    """Contract for strategies that decide the kind of a declaration site."""

    @abstractmethod
    def classify(self, site: DeclarationSite) -> RoleGuess:
        """Return the entity kind this site contributes to, if any."""


class HeuristicClassifier(Classifier):
    """Naming and structure heuristics used for front-end codebases."""

    def classify(self, site: DeclarationSite) -> RoleGuess:
        if site.component is not None:
            return self._classify_component(site.component)
        if site.container is not None:
            if site.container.site == "definition":
                return RoleGuess(EntityKind.CONTAINER, "container definition site")
            return RoleGuess(None, f"container {site.container.site} site")
        if site.declaration is not None:
            return self._classify_declaration(site.declaration, site.analysis)
        if self.is_state_accessor(site.name, site.analysis):
            return RoleGuess(EntityKind.STATE_ACCESSOR, "exported accessor used in file")
        return RoleGuess(None, "no declaration attached")

    def _classify_component(self, component: ComponentDecl) -> RoleGuess:
        if not component.produces_markup:
            return RoleGuess(None, "declaration does not produce markup")
        if _PASCAL_CASE.match(component.name) or component.name in _DEFAULT_PLACEHOLDERS:
            return RoleGuess(EntityKind.COMPONENT, f"{component.form} markup producer")
        return RoleGuess(None, "component name is not PascalCase")

    def _classify_declaration(self, declaration: Declaration, analysis: FileAnalysis) -> RoleGuess:
        if not declaration.exported:
            return RoleGuess(None, "declaration is not exported")
        if analysis.component(declaration.name) is not None:
            return RoleGuess(None, "already declared as a component")
        if any(container.name == declaration.name for container in analysis.containers):
            return RoleGuess(None, "already declared as a container")
        if self.is_state_accessor(declaration.name, analysis):
            return RoleGuess(None, "tracked as a state accessor")
        return RoleGuess(EntityKind.UTILITY, "exported function or variable")

    @staticmethod
    def is_state_accessor(name: str, analysis: FileAnalysis) -> bool:
        if not _ACCESSOR_NAME.match(name):
            return False
        if not any(usage.name == name for usage in analysis.state_accessor_usage):
            return False
        return analysis.exports_callable(name)


_BUILTIN_FACTORIES: Dict[str, Callable[[], Classifier]] = {
    "heuristic": HeuristicClassifier,
}


def discover_classifier(name: str = "heuristic") -> Classifier:
    """Return the classifier registered under `name`, built-in or via entry point."""
    key = name.lower()
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is not None:
        return factory()

    for entry in _iter_entry_points():
        if entry.name.lower() != key:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Failed to load classifier entry point '{name}': {exc}") from exc
        return _coerce_classifier(loaded)

    raise ValueError(f"Unknown classifier requested: {name}")


def _coerce_classifier(obj: object) -> Classifier:
    if isinstance(obj, Classifier):
        return obj
    if isinstance(obj, type) and issubclass(obj, Classifier):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Classifier):
            return instance
    raise TypeError("Classifier entry point must be a Classifier subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "Classifier",
    "DeclarationSite",
    "HeuristicClassifier",
    "RoleGuess",
    "discover_classifier",
]
