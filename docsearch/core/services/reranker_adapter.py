"""Reranking of fused candidates through the shared inference resource."""

import asyncio
import logging
import math
from dataclasses import replace

from ..errors import InferenceError
from ..models.document import FusedCandidate
from ..models.outcome import StageOutcome
from ..protocols.inference import InferenceProtocol

logger = logging.getLogger(__name__)

STAGE = "rerank"


class RerankerAdapter:
    """Scores candidates in one batched call; falls back to fused order."""

    def __init__(self, inference: InferenceProtocol, timeout: float = 30.0):
        """Initialize adapter.

        Args:
            inference: Shared inference resource.
            timeout: Seconds to wait for the reranker.
        """
        self._inference = inference
        self._timeout = timeout

    async def rerank(
        self, query: str, candidates: list[FusedCandidate], skip: bool = False
    ) -> StageOutcome[list[FusedCandidate]]:
        """Rerank candidates by relevance.

        Args:
            query: User query.
            candidates: Fused candidates.
            skip: Return the input untouched.

        Returns:
            Outcome with rescored candidates, or the input when degraded.
        """
        if skip or not candidates:
            return StageOutcome.ok(STAGE, candidates)

        texts = [c.body for c in candidates]
        try:
            scores = await asyncio.wait_for(
                self._inference.rerank(query, texts), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            return StageOutcome.fallback(
                STAGE, candidates, f"timed out after {self._timeout}s"
            )
        except InferenceError as e:
            return StageOutcome.fallback(STAGE, candidates, e.message)

        problem = _validate_scores(scores, len(candidates))
        if problem:
            return StageOutcome.fallback(STAGE, candidates, problem)

        reranked = [
            replace(c, rerank_score=float(s), final_score=float(s))
            for c, s in zip(candidates, scores)
        ]

        if logger.isEnabledFor(logging.DEBUG):
            top_scores = ", ".join(
                f"{s:.2f}" for s in sorted(map(float, scores), reverse=True)[:3]
            )
            logger.debug(f"Reranker top-3 scores: [{top_scores}]")

        return StageOutcome.ok(STAGE, reranked)


def _validate_scores(scores: object, expected: int) -> str | None:
    if not isinstance(scores, (list, tuple)):
        return f"malformed rerank output: {type(scores).__name__}"
    if len(scores) != expected:
        return f"expected {expected} rerank scores, got {len(scores)}"
    for s in scores:
        if isinstance(s, bool) or not isinstance(s, (int, float)) or not math.isfinite(s):
            return f"invalid rerank score: {s!r}"
    return None
