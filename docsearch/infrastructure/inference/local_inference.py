"""Shared on-device inference resource behind a single access gate."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from docsearch.core.errors import InferenceError
from docsearch.core.protocols.embedder import EmbedderProtocol
from docsearch.core.protocols.llm import LLMProtocol
from docsearch.core.protocols.reranker import RerankerProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalInference:
    """Embedding, reranking and expansion models with serialized access.

    The models are not safe to call concurrently, so every call goes through
    one FIFO gate. Blocking model calls run in a worker thread while the gate
    is held. If the caller is cancelled mid-call, the gate stays held until
    the thread finishes; a caller cancelled while waiting simply leaves the
    queue.
    """

    def __init__(
        self,
        embedder: EmbedderProtocol,
        reranker: RerankerProtocol,
        llm: LLMProtocol,
        query_prefix: str = "query: ",
    ):
        """Initialize inference resource. Nothing is loaded until first use.

        Args:
            embedder: Bi-encoder embedding model.
            reranker: Cross-encoder relevance model.
            llm: Query expansion model client.
            query_prefix: Prefix the embedding model expects on queries.
        """
        self._embedder = embedder
        self._reranker = reranker
        self._llm = llm
        self._query_prefix = query_prefix
        self._gate = asyncio.Lock()
        self._closing = False
        self._disposed = False
        self._dispose_task: Optional[asyncio.Task] = None

    async def embed(self, text: str) -> list[float]:
        vector = await self._call_blocking(
            "embed", self._embedder.encode, f"{self._query_prefix}{text}"
        )
        try:
            return [float(v) for v in vector]
        except (TypeError, ValueError) as e:
            raise InferenceError(f"malformed embedding: {e}", stage="embed") from e

    async def rerank(self, query: str, texts: list[str]) -> list[float]:
        if not texts:
            return []
        return await self._call_blocking("rerank", self._reranker.score, query, texts)

    async def expand(self, query: str) -> list[str]:
        return await self._call_async("expand", self._llm.expand_query, query)

    async def dispose(self) -> None:
        """Release models after in-flight calls drain. Safe to call repeatedly."""
        self._closing = True
        if self._dispose_task is None:
            self._dispose_task = asyncio.ensure_future(self._dispose())
        await asyncio.shield(self._dispose_task)

    def describe(self) -> dict[str, Any]:
        return {
            "embedder_loaded": self._embedder.loaded,
            "reranker_loaded": self._reranker.loaded,
            "disposed": self._disposed,
        }

    async def _dispose(self) -> None:
        async with self._gate:
            logger.info("Disposing inference resource")
            self._embedder.unload()
            self._reranker.unload()
            await self._llm.aclose()
            self._disposed = True
        logger.info("Inference resource disposed")

    def _ensure_open(self, stage: str) -> None:
        if self._closing:
            raise InferenceError("inference resource is disposed", stage=stage)

    async def _call_blocking(self, stage: str, fn: Callable[..., T], *args: Any) -> T:
        self._ensure_open(stage)
        await self._gate.acquire()
        try:
            self._ensure_open(stage)
            work = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        except BaseException:
            self._gate.release()
            raise
        work.add_done_callback(self._release_after)

        try:
            return await asyncio.shield(work)
        except asyncio.CancelledError:
            logger.debug(f"[{stage}] caller cancelled, gate held until model call ends")
            raise
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"{type(e).__name__}: {e}", stage=stage) from e

    def _release_after(self, work: asyncio.Future) -> None:
        self._gate.release()
        if not work.cancelled():
            # Mark retrieved so abandoned failures are not reported as unhandled
            work.exception()

    async def _call_async(
        self, stage: str, fn: Callable[..., Awaitable[T]], *args: Any
    ) -> T:
        self._ensure_open(stage)
        async with self._gate:
            self._ensure_open(stage)
            try:
                return await fn(*args)
            except (asyncio.CancelledError, InferenceError):
                raise
            except Exception as e:
                raise InferenceError(f"{type(e).__name__}: {e}", stage=stage) from e
