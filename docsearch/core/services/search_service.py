"""Search service - hybrid query engine over keyword and vector indices."""

import asyncio
import logging
import math
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..errors import RequestTimeoutError, SearchError, ValidationError
from ..models.document import FusedCandidate, Result, ranking_key
from ..models.outcome import StageOutcome
from ..protocols.context_index import ContextIndexProtocol
from ..protocols.inference import InferenceProtocol
from ..protocols.keyword_index import KeywordIndexProtocol
from ..protocols.vector_store import VectorIndexProtocol
from .candidate_fuser import CandidateFuser
from .candidate_retriever import CandidateRetriever
from .query_expander import QueryExpander
from .reranker_adapter import RerankerAdapter
from .snippet import extract_snippet

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchService:
    """Keyword, vector and hybrid search with graceful degradation.

    Expansion and reranking are optional stages: when they fail the request
    still completes with the fused ranking. Embedding and index failures are
    fatal for the request that hit them and nothing else.
    """

    def __init__(
        self,
        keyword_index: KeywordIndexProtocol,
        vector_index: VectorIndexProtocol,
        inference: InferenceProtocol,
        context_index: ContextIndexProtocol,
        expander: QueryExpander | None = None,
        fuser: CandidateFuser | None = None,
        reranker: RerankerAdapter | None = None,
        candidate_multiplier: int = 5,
        fast_candidate_limit: int = 5,
        vsearch_default_min_score: float = 0.3,
        snippet_max_length: int = 300,
    ):
        """Initialize search service.

        Args:
            keyword_index: BM25 full-text index.
            vector_index: Embedding similarity index.
            inference: Shared inference resource.
            context_index: Breadcrumb lookup.
            expander: Query expander (defaults to one over ``inference``).
            fuser: Candidate fuser (defaults to min-max fusion).
            reranker: Reranker adapter (defaults to one over ``inference``).
            candidate_multiplier: Hybrid over-fetch factor relative to limit.
            fast_candidate_limit: Candidate cap on the fast path.
            vsearch_default_min_score: Vector threshold when caller passes 0.
            snippet_max_length: Snippet length in characters.
        """
        self._keyword_index = keyword_index
        self._inference = inference
        self._context_index = context_index
        self._retriever = CandidateRetriever(keyword_index, vector_index, inference)
        self._vector_index = vector_index
        self._expander = expander or QueryExpander(inference)
        self._fuser = fuser or CandidateFuser()
        self._reranker = reranker or RerankerAdapter(inference)
        self._candidate_multiplier = candidate_multiplier
        self._fast_candidate_limit = fast_candidate_limit
        self._vsearch_default_min_score = vsearch_default_min_score
        self._snippet_max_length = snippet_max_length
        self._closed = False
        self._shutdown_task: Optional[asyncio.Task] = None

    async def search(
        self,
        query: str,
        limit: int = 20,
        min_score: float = 0.0,
        collection: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> list[Result]:
        """Keyword-only search. Never touches the inference resource.

        Args:
            query: Search query.
            limit: Maximum number of results.
            min_score: Minimum BM25 score.
            collection: Collection filter.
            timeout: Seconds before the request is cancelled.

        Returns:
            Results sorted by score.
        """
        self._validate(query, limit, min_score, timeout=timeout)
        return await self._run(
            "search",
            query,
            lambda: self._keyword_pipeline(query, limit, min_score, collection),
            timeout,
        )

    async def vsearch(
        self,
        query: str,
        limit: int = 20,
        min_score: float = 0.0,
        collection: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> list[Result]:
        """Vector-only search.

        A ``min_score`` of 0 means the default similarity threshold.
        """
        self._validate(query, limit, min_score, timeout=timeout)
        threshold = min_score or self._vsearch_default_min_score
        return await self._run(
            "vsearch",
            query,
            lambda: self._vector_pipeline(query, limit, threshold, collection),
            timeout,
        )

    async def query(
        self,
        query: str,
        limit: int = 20,
        min_score: float = 0.0,
        collection: Optional[str] = None,
        fast: bool = False,
        candidate_limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[Result]:
        """Hybrid search: expand, retrieve both channels, fuse, rerank.

        Args:
            query: Search query.
            limit: Maximum number of results.
            min_score: Minimum final score.
            collection: Collection filter.
            fast: Skip expansion and reranking, cap candidates.
            candidate_limit: Explicit per-lookup candidate count.
            timeout: Seconds before the request is cancelled.

        Returns:
            Results sorted by score.
        """
        self._validate(query, limit, min_score, candidate_limit, timeout)
        if candidate_limit is None:
            if fast:
                candidate_limit = self._fast_candidate_limit
            else:
                candidate_limit = limit * self._candidate_multiplier
        return await self._run(
            "query",
            query,
            lambda: self._hybrid_pipeline(
                query, limit, min_score, collection, fast, candidate_limit
            ),
            timeout,
        )

    async def status(self) -> dict[str, Any]:
        """Index health info plus inference resource state."""
        info = dict(await self._keyword_index.status())
        info["inference"] = self._inference.describe()
        return info

    async def shutdown(self) -> None:
        """Dispose the inference resource and release connections. Idempotent."""
        self._closed = True
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._shutdown())
        await asyncio.shield(self._shutdown_task)

    async def _shutdown(self) -> None:
        logger.info("Shutting down search service")
        try:
            await self._inference.dispose()
        finally:
            await self._vector_index.aclose()
        logger.info("Search service stopped")

    async def _keyword_pipeline(
        self, query: str, limit: int, min_score: float, collection: Optional[str]
    ) -> list[Result]:
        candidates = await self._retriever.keyword([query], limit, collection)
        fused = [FusedCandidate.from_candidate(c) for c in candidates]
        return self._finalize(query, fused, limit, min_score)

    async def _vector_pipeline(
        self, query: str, limit: int, min_score: float, collection: Optional[str]
    ) -> list[Result]:
        candidates = await self._retriever.vector(query, limit, collection)
        fused = [FusedCandidate.from_candidate(c) for c in candidates]
        return self._finalize(query, fused, limit, min_score)

    async def _hybrid_pipeline(
        self,
        query: str,
        limit: int,
        min_score: float,
        collection: Optional[str],
        fast: bool,
        candidate_limit: int,
    ) -> list[Result]:
        expansion = await self._expander.expand(query, enabled=not fast)
        self._report(expansion)
        expanded = expansion.value

        keyword_task = asyncio.ensure_future(
            self._retriever.keyword(expanded.all_queries, candidate_limit, collection)
        )
        vector_task = asyncio.ensure_future(
            self._retriever.vector(expanded.original, candidate_limit, collection)
        )
        try:
            keyword, vector = await asyncio.gather(keyword_task, vector_task)
        except BaseException:
            keyword_task.cancel()
            vector_task.cancel()
            raise

        fused = self._fuser.fuse(keyword + vector)

        reranked = await self._reranker.rerank(query, fused, skip=fast)
        self._report(reranked)

        return self._finalize(query, reranked.value, limit, min_score)

    def _finalize(
        self,
        query: str,
        candidates: list[FusedCandidate],
        limit: int,
        min_score: float,
    ) -> list[Result]:
        """Threshold, sort, truncate, then attach snippets and context."""
        kept = [
            c for c in candidates
            if math.isfinite(c.final_score) and c.final_score >= min_score
        ]
        kept.sort(key=ranking_key)
        return [self._to_result(query, c) for c in kept[:limit]]

    def _to_result(self, query: str, candidate: FusedCandidate) -> Result:
        snippet = extract_snippet(candidate.body, query, self._snippet_max_length)
        return Result(
            docid=candidate.docid,
            score=round(candidate.final_score, 2),
            display_path=candidate.display_path,
            title=candidate.title,
            snippet=snippet.snippet,
            context=self._context_index.context_of(candidate.file_ref),
        )

    def _report(self, outcome: StageOutcome) -> None:
        if outcome.degraded:
            logger.warning(
                f"[{outcome.stage}] degraded, continuing: {outcome.reason}",
                extra={"stage": outcome.stage, "reason": outcome.reason},
            )

    async def _run(
        self,
        mode: str,
        query: str,
        pipeline: Callable[[], Awaitable[list[Result]]],
        timeout: Optional[float],
    ) -> list[Result]:
        started = time.perf_counter()
        try:
            if self._closed:
                raise SearchError("search service is shut down", stage="engine")
            results = await _with_timeout(pipeline(), timeout)
        except SearchError as e:
            logger.error(f"{mode} failed for '{query[:60]}': {e}")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{mode} '{query[:60]}' -> {len(results)} ({elapsed_ms:.0f}ms)")
        return results

    def _validate(
        self,
        query: str,
        limit: int,
        min_score: float,
        candidate_limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("missing q parameter")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(f"limit must be a positive integer, got {limit!r}")
        if not isinstance(min_score, (int, float)) or not math.isfinite(min_score):
            raise ValidationError(f"min_score must be a finite number, got {min_score!r}")
        if candidate_limit is not None and (
            isinstance(candidate_limit, bool)
            or not isinstance(candidate_limit, int)
            or candidate_limit < 1
        ):
            raise ValidationError(
                f"candidate_limit must be a positive integer, got {candidate_limit!r}"
            )
        if timeout is not None and not timeout > 0:
            raise ValidationError(f"timeout must be positive, got {timeout!r}")


async def _with_timeout(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError(f"timed out after {timeout}s") from e
