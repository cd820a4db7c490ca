
import logging
from abc import ABC, abstractmethod

from ..models.document import FusedCandidate

logger = logging.getLogger(__name__)


class FusionPolicy(ABC):
    """Base class for combining per-channel scores into a final score."""

    @abstractmethod
    def combine(self, candidates: list[FusedCandidate]) -> None:
        """Set ``final_score`` on every candidate in place."""
        ...


def min_max_normalize(scores: dict[tuple[str, int], float]) -> dict[tuple[str, int], float]:
    """Scale scores to [0, 1] within one request.

    Equal scores (including a single score) all map to 1.0.
    """
    if not scores:
        return {}

    low = min(scores.values())
    high = max(scores.values())
    spread = high - low

    if spread == 0:
        return {key: 1.0 for key in scores}

    return {key: (value - low) / spread for key, value in scores.items()}


class MinMaxFusionPolicy(FusionPolicy):
    """Weighted sum of per-channel min-max normalized scores."""

    def __init__(self, keyword_weight: float = 0.5, vector_weight: float = 0.5):
        """Initialize policy.

        Args:
            keyword_weight: Weight of the keyword channel.
            vector_weight: Weight of the vector channel.
        """
        if keyword_weight < 0 or vector_weight < 0:
            raise ValueError("Fusion weights must be non-negative")
        total = keyword_weight + vector_weight
        if total == 0:
            raise ValueError("At least one fusion weight must be positive")

        self._keyword_weight = keyword_weight / total
        self._vector_weight = vector_weight / total

    def combine(self, candidates: list[FusedCandidate]) -> None:
        keyword = min_max_normalize(
            {c.key: c.keyword_score for c in candidates if c.keyword_score is not None}
        )
        vector = min_max_normalize(
            {c.key: c.vector_score for c in candidates if c.vector_score is not None}
        )

        # One channel alone is used unweighted
        if not keyword or not vector:
            present = keyword or vector
            for c in candidates:
                c.final_score = present.get(c.key, 0.0)
            return

        for c in candidates:
            c.final_score = (
                self._keyword_weight * keyword.get(c.key, 0.0)
                + self._vector_weight * vector.get(c.key, 0.0)
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Fusion: {len(keyword)} keyword + {len(vector)} vector "
                f"-> {len(candidates)} chunks"
            )
