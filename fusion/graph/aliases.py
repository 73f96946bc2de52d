"""Alias tables from tsconfig/jsconfig `compilerOptions.paths`."""

from __future__ import annotations

import json
import posixpath
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping

from ..config import ConfigError, _as_dict, _as_str, _as_str_list
from ..logging import get_logger

# Strings are matched first so that "@/*" inside a value is never read as a comment.
_COMMENT_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def load_alias_table(tsconfig: Path) -> Dict[str, List[str]]:
    """Return the path aliases declared in a tsconfig file, rebased onto `baseUrl`."""
    logger = get_logger("graph.aliases")
    try:
        text = tsconfig.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {tsconfig}: {exc}") from exc

    try:
        data = json.loads(_strip_jsonc(text))
    except ValueError as exc:
        logger.warning("Could not parse %s for aliases: %s", tsconfig.name, exc)
        return {}

    table = alias_table_from_tsconfig(_as_dict(data))
    logger.debug("Loaded %d aliases from %s", len(table), tsconfig)
    return table


def alias_table_from_tsconfig(data: Mapping[str, Any]) -> Dict[str, List[str]]:
    options = _as_dict(data.get("compilerOptions"))
    base_url = (_as_str(options.get("baseUrl")) or ".").strip()
    table: Dict[str, List[str]] = {}
    for pattern, targets in _as_dict(options.get("paths")).items():
        rebased = [_rebase(base_url, target) for target in _as_str_list(targets)]
        if rebased:
            table[str(pattern)] = rebased
    return table


def merge_alias_tables(*tables: Mapping[str, List[str]]) -> Dict[str, List[str]]:
    """Later tables override earlier ones key by key."""
    merged: Dict[str, List[str]] = {}
    for table in tables:
        for pattern, targets in table.items():
            merged[pattern] = list(targets)
    return merged


def _rebase(base_url: str, target: str) -> str:
    wildcard = target.endswith("*")
    head = target[:-1] if wildcard else target
    normalised = posixpath.normpath(posixpath.join(base_url, head))
    if normalised == ".":
        normalised = ""
    if not wildcard:
        return normalised
    if not head or head.endswith("/"):
        return posixpath.join(normalised, "*")
    return f"{normalised}*"


def _strip_jsonc(text: str) -> str:
    without_comments = _COMMENT_PATTERN.sub(lambda match: match.group(1) or "", text)
    return _TRAILING_COMMA.sub(r"\1", without_comments)


__all__ = ["alias_table_from_tsconfig", "load_alias_table", "merge_alias_tables"]
