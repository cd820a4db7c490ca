"""Candidate retrieval over the keyword and vector channels."""

import asyncio
import logging
from typing import Optional

from ..errors import SearchError, SearchIndexError
from ..models.document import Candidate
from ..protocols.inference import InferenceProtocol
from ..protocols.keyword_index import KeywordIndexProtocol
from ..protocols.vector_store import VectorIndexProtocol

logger = logging.getLogger(__name__)


class CandidateRetriever:
    """Issues per-channel index lookups for one request."""

    def __init__(
        self,
        keyword_index: KeywordIndexProtocol,
        vector_index: VectorIndexProtocol,
        inference: InferenceProtocol,
    ):
        self._keyword_index = keyword_index
        self._vector_index = vector_index
        self._inference = inference

    async def keyword(
        self, queries: list[str], limit: int, collection: Optional[str] = None
    ) -> list[Candidate]:
        """One keyword lookup per query, outputs concatenated in query order.

        Args:
            queries: Original query followed by expansion variants.
            limit: Per-lookup candidate limit.
            collection: Collection filter.

        Returns:
            Raw keyword candidates, not deduplicated.
        """
        lookups = [
            asyncio.ensure_future(self._search_keyword(q, limit, collection))
            for q in queries
        ]
        try:
            batches = await asyncio.gather(*lookups)
        except BaseException:
            # A failed lookup fails the channel; siblings still in flight go too
            for lookup in lookups:
                lookup.cancel()
            raise
        candidates = [c for batch in batches for c in batch]
        logger.debug(
            f"Keyword channel: {len(candidates)} candidates from {len(queries)} queries"
        )
        return candidates

    async def vector(
        self, query: str, limit: int, collection: Optional[str] = None
    ) -> list[Candidate]:
        """Embed the query and fetch the nearest chunks.

        Raises:
            InferenceError: When the query cannot be embedded.
            SearchIndexError: When the vector index fails.
        """
        embedding = await self._inference.embed(query)
        try:
            candidates = await self._vector_index.search_vector(
                embedding, limit, collection
            )
        except SearchError:
            raise
        except Exception as e:
            raise SearchIndexError(f"vector index failed: {e}", stage="vector") from e
        logger.debug(f"Vector channel: {len(candidates)} candidates")
        return candidates

    async def _search_keyword(
        self, query: str, limit: int, collection: Optional[str]
    ) -> list[Candidate]:
        try:
            return await self._keyword_index.search_keyword(query, limit, collection)
        except SearchError:
            raise
        except Exception as e:
            raise SearchIndexError(f"keyword index failed: {e}", stage="keyword") from e
