"""Query expansion - related phrasings from the inference resource."""

import asyncio
import logging

from ..errors import InferenceError
from ..models.document import ExpandedQuery
from ..models.outcome import StageOutcome
from ..protocols.inference import InferenceProtocol

logger = logging.getLogger(__name__)

STAGE = "expand"


class QueryExpander:
    """Turns a query into related queries. Never fatal."""

    def __init__(
        self,
        inference: InferenceProtocol,
        timeout: float = 10.0,
        max_variants: int = 4,
    ):
        """Initialize expander.

        Args:
            inference: Shared inference resource.
            timeout: Seconds to wait for the expansion model.
            max_variants: Maximum number of variants kept.
        """
        self._inference = inference
        self._timeout = timeout
        self._max_variants = max_variants

    async def expand(self, query: str, enabled: bool = True) -> StageOutcome[ExpandedQuery]:
        """Expand query into variants.

        Args:
            query: Original query.
            enabled: When False, no inference call is made.

        Returns:
            Outcome with the expanded query; degraded to no variants on failure.
        """
        bare = ExpandedQuery(original=query)
        if not enabled:
            return StageOutcome.ok(STAGE, bare)

        try:
            raw = await asyncio.wait_for(
                self._inference.expand(query), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            return StageOutcome.fallback(
                STAGE, bare, f"timed out after {self._timeout}s"
            )
        except InferenceError as e:
            return StageOutcome.fallback(STAGE, bare, e.message)

        if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
            return StageOutcome.fallback(
                STAGE, bare, f"malformed expansion output: {type(raw).__name__}"
            )

        variants = dedupe_variants(query, raw)[: self._max_variants]
        logger.debug(f"Expanded '{query[:50]}' into {len(variants)} variants")
        return StageOutcome.ok(STAGE, ExpandedQuery(original=query, variants=variants))


def dedupe_variants(original: str, variants: list[str]) -> list[str]:
    """Drop blanks and case-insensitive repeats, including the original."""
    seen = {original.strip().lower()}
    kept = []
    for variant in variants:
        text = variant.strip()
        folded = text.lower()
        if not text or folded in seen:
            continue
        seen.add(folded)
        kept.append(text)
    return kept
