"""Domain models."""
from .document import (
    Candidate,
    ExpandedQuery,
    FusedCandidate,
    Result,
    Snippet,
    SourceChannel,
    ranking_key,
)
from .outcome import StageOutcome

__all__ = [
    "Candidate",
    "ExpandedQuery",
    "FusedCandidate",
    "Result",
    "Snippet",
    "SourceChannel",
    "StageOutcome",
    "ranking_key",
]
