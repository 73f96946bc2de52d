"""Resolution of raw import specifiers to files known within one project."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from ..config import DEFAULT_ALIAS_SIGILS, DEFAULT_EXTENSIONS, DEFAULT_ROOT_PREFIXES


@dataclass(frozen=True)
class ImportResolution:
    """Outcome of resolving one specifier from one importing file."""

    specifier: str
    target: Optional[str] = None
    external: bool = False
    candidates: tuple[str, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.target is not None

    @property
    def unresolved(self) -> bool:
        return not self.external and self.target is None


class ImportResolver:
    """Maps specifiers such as `./Card`, `/utils/date` or `@/hooks` to project files.

    Candidate base paths are tried in order: relative to the importing file,
    project-root absolute (rebased onto every root prefix), then the alias
    table. Each base is matched exactly, then with every known extension,
    then as a directory holding an `index.<ext>` file. First match wins.
    """

    def __init__(
        self,
        known_files: Iterable[str],
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        root_prefixes: Sequence[str] = DEFAULT_ROOT_PREFIXES,
        aliases: Optional[Mapping[str, Sequence[str]]] = None,
        alias_sigils: Sequence[str] = DEFAULT_ALIAS_SIGILS,
    ) -> None:
        self.known_files = frozenset(known_files)
        self.extensions = tuple(extensions)
        self.root_prefixes = tuple(prefix.strip("/") for prefix in root_prefixes)
        self.aliases = {key: list(targets) for key, targets in (aliases or {}).items()}
        self.alias_sigils = tuple(alias_sigils)

    def is_external(self, specifier: str) -> bool:
        """Return True for bare package specifiers (`react`, `@scope/pkg`, `left-pad`)."""
        if specifier.startswith((".", "/")):
            return False
        if self.alias_sigils and specifier.startswith(self.alias_sigils):
            return False
        return not any(_alias_matches(pattern, specifier) for pattern in self.aliases)

    def resolve(self, importer: str, specifier: str) -> ImportResolution:
        if not specifier or self.is_external(specifier):
            return ImportResolution(specifier=specifier, external=True)

        bases = self._candidate_bases(importer, specifier)
        tried: List[str] = []
        for base in bases:
            for candidate in self._expand(base):
                if candidate in tried:
                    continue
                tried.append(candidate)
                if candidate in self.known_files:
                    return ImportResolution(
                        specifier=specifier, target=candidate, candidates=tuple(tried)
                    )
        return ImportResolution(specifier=specifier, candidates=tuple(tried))

    def _candidate_bases(self, importer: str, specifier: str) -> List[str]:
        bases: List[str] = []
        if specifier.startswith("."):
            relative = _clean(posixpath.join(posixpath.dirname(importer), specifier))
            if relative is not None:
                bases.append(relative)
        else:
            stripped = self._strip_root(specifier)
            if stripped is not None:
                for prefix in self.root_prefixes:
                    rebased = _clean(posixpath.join(prefix, stripped) if prefix else stripped)
                    if rebased is not None:
                        bases.append(rebased)
            for pattern, targets in self.aliases.items():
                for target in _expand_alias(pattern, targets, specifier):
                    cleaned = _clean(target)
                    if cleaned is not None:
                        bases.append(cleaned)

        unique: List[str] = []
        for base in bases:
            if base not in unique:
                unique.append(base)
        return unique

    def _strip_root(self, specifier: str) -> Optional[str]:
        if specifier.startswith("/"):
            return specifier.lstrip("/")
        for sigil in self.alias_sigils:
            if specifier.startswith(sigil):
                return specifier[len(sigil):]
        return None

    def _expand(self, base: str) -> List[str]:
        candidates = [base]
        candidates.extend(base if base.endswith(ext) else f"{base}{ext}" for ext in self.extensions)
        candidates.extend(posixpath.join(base, f"index{ext}") for ext in self.extensions)
        return candidates


def _alias_matches(pattern: str, specifier: str) -> bool:
    if pattern.endswith("*"):
        return specifier.startswith(pattern[:-1])
    return specifier == pattern


def _expand_alias(pattern: str, targets: Sequence[str], specifier: str) -> List[str]:
    if pattern.endswith("*"):
        prefix = pattern[:-1]
        if not specifier.startswith(prefix):
            return []
        rest = specifier[len(prefix):]
        return [target.replace("*", rest) if "*" in target else posixpath.join(target, rest) for target in targets]
    if specifier == pattern:
        return [target.rstrip("*") for target in targets]
    return []


def _clean(path: str) -> Optional[str]:
    """Normalise a project-relative path; None when it escapes the project root."""
    path = path.lstrip("/")
    if not path:
        return None
    normalised = posixpath.normpath(path)
    if normalised == "." or normalised == ".." or normalised.startswith("../"):
        return None
    return normalised


__all__ = ["ImportResolution", "ImportResolver"]
