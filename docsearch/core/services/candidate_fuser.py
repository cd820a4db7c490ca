"""Candidate fusion - merge and deduplicate multi-channel candidates."""

import logging
import math

from ..models.document import Candidate, FusedCandidate, SourceChannel, ranking_key
from ..strategies.fusion import FusionPolicy, MinMaxFusionPolicy

logger = logging.getLogger(__name__)


class CandidateFuser:
    """Groups candidates by chunk and scores them with a fusion policy."""

    def __init__(self, policy: FusionPolicy | None = None):
        self._policy = policy or MinMaxFusionPolicy()

    def fuse(self, candidates: list[Candidate]) -> list[FusedCandidate]:
        """Merge candidates sharing (docid, chunk_pos).

        Args:
            candidates: Raw candidates from any channels.

        Returns:
            One fused candidate per chunk, best first.
        """
        fused: dict[tuple[str, int], FusedCandidate] = {}

        for candidate in candidates:
            if not math.isfinite(candidate.raw_score):
                logger.debug(
                    f"Dropping non-finite {candidate.source_channel.value} score "
                    f"for {candidate.docid}:{candidate.chunk_pos}"
                )
                continue

            entry = fused.get(candidate.key)
            if entry is None:
                entry = FusedCandidate(
                    docid=candidate.docid,
                    chunk_pos=candidate.chunk_pos,
                    display_path=candidate.display_path,
                    title=candidate.title,
                    body=candidate.body,
                    final_score=0.0,
                )
                fused[candidate.key] = entry

            if candidate.source_channel is SourceChannel.KEYWORD:
                entry.keyword_score = _max(entry.keyword_score, candidate.raw_score)
            else:
                entry.vector_score = _max(entry.vector_score, candidate.raw_score)

        results = list(fused.values())
        self._policy.combine(results)
        results.sort(key=ranking_key)
        return results


def _max(current: float | None, score: float) -> float:
    return score if current is None else max(current, score)
