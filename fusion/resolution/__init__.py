"""Cross-project entity resolution."""

from .aggregator import CandidateAttributes, EntityAggregator, EntityCandidate, EntityGroup
from .conflicts import ConflictDetector, DetectionResult
from .identity import Identity, IdentityAssigner, slugify
from .resolver import (
    ConflictReport,
    EntityResolver,
    ResolutionFailure,
    ResolutionResult,
    ResolutionSummary,
    ResolvedEntity,
)

__all__ = [
    "CandidateAttributes",
    "ConflictDetector",
    "ConflictReport",
    "DetectionResult",
    "EntityAggregator",
    "EntityCandidate",
    "EntityGroup",
    "EntityResolver",
    "Identity",
    "IdentityAssigner",
    "ResolutionFailure",
    "ResolutionResult",
    "ResolutionSummary",
    "ResolvedEntity",
    "slugify",
]
