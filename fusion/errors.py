"""Exception hierarchy shared by the fusion engine."""

from __future__ import annotations


class FusionError(RuntimeError):
    """Base class for run-level failures raised by the engine."""


class SnapshotError(FusionError):
    """Raised when an analysis snapshot cannot be read or parsed."""


class NoEntitiesError(FusionError):
    """Raised when no valid entity exists across all input projects."""


class MissingAnalysisError(FusionError):
    """Raised when a group member has no analysis record in the snapshot."""

    def __init__(self, key: object) -> None:
        super().__init__(f"No analysis record for {key}")
        self.key = key


__all__ = [
    "FusionError",
    "MissingAnalysisError",
    "NoEntitiesError",
    "SnapshotError",
]
