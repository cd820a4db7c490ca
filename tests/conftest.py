"""
Pytest configuration and shared fixtures.

Fakes for the external collaborators of the search engine live here so
every test module can build a SearchService without models or databases.
"""

import asyncio
from typing import Optional

import pytest

from docsearch.core.errors import InferenceError, SearchIndexError
from docsearch.core.models.document import Candidate, SourceChannel
from docsearch.core.services.search_service import SearchService


def make_candidate(
    docid: str,
    chunk_pos: int,
    score: float,
    channel: SourceChannel = SourceChannel.KEYWORD,
    body: Optional[str] = None,
    path: Optional[str] = None,
) -> Candidate:
    """Build a candidate with readable defaults."""
    display_path = path or f"notes/{docid}.md"
    return Candidate(
        docid=docid,
        chunk_pos=chunk_pos,
        display_path=display_path,
        title=f"Title {docid}",
        body=body if body is not None else f"Body of {docid} chunk {chunk_pos}",
        raw_score=score,
        source_channel=channel,
    )


def kw(docid, chunk_pos, score, **kwargs) -> Candidate:
    return make_candidate(docid, chunk_pos, score, SourceChannel.KEYWORD, **kwargs)


def vec(docid, chunk_pos, score, **kwargs) -> Candidate:
    return make_candidate(docid, chunk_pos, score, SourceChannel.VECTOR, **kwargs)


class FakeKeywordIndex:
    """Keyword index returning canned candidates per query."""

    def __init__(self, results=None, by_query=None, error: Exception | None = None, delay=0.0):
        self.results = list(results or [])
        self.by_query = dict(by_query or {})
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, int, Optional[str]]] = []
        self.cancelled = False

    async def search_keyword(self, query, limit, collection=None):
        self.calls.append((query, limit, collection))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return list(self.by_query.get(query, self.results))[:limit]

    async def status(self):
        return {
            "collections": [{"name": "notes", "documents": 2}],
            "documentCount": 2,
            "chunkCount": 5,
        }


class ScriptedKeywordIndex:
    """Fails some queries outright and answers the others slowly."""

    def __init__(self, failing=(), delay=0.2):
        self.failing = set(failing)
        self.delay = delay
        self.finished: list[str] = []
        self.cancelled: list[str] = []

    async def search_keyword(self, query, limit, collection=None):
        if query in self.failing:
            raise SearchIndexError(f"lookup for {query!r} failed", stage="keyword")
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(query)
            raise
        self.finished.append(query)
        return [kw(query, 0, 1.0)]

    async def status(self):
        return {"collections": [], "documentCount": 0, "chunkCount": 0}


class FakeVectorIndex:
    """Vector index returning canned candidates."""

    def __init__(self, results=None, error: Exception | None = None, delay=0.0):
        self.results = list(results or [])
        self.error = error
        self.delay = delay
        self.calls: list[tuple[list[float], int, Optional[str]]] = []
        self.closed = False

    async def search_vector(self, vector, limit, collection=None):
        self.calls.append((vector, limit, collection))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.results)[:limit]

    async def aclose(self):
        self.closed = True


class FakeInference:
    """Inference resource with scripted answers and failure switches."""

    def __init__(
        self,
        rerank_scores=None,
        expansions=None,
        embed_error: bool = False,
        rerank_error: bool = False,
        expand_error: bool = False,
        rerank_delay: float = 0.0,
        expand_delay: float = 0.0,
    ):
        self.rerank_scores = rerank_scores
        self.expansions = list(expansions or [])
        self.embed_error = embed_error
        self.rerank_error = rerank_error
        self.expand_error = expand_error
        self.rerank_delay = rerank_delay
        self.expand_delay = expand_delay
        self.calls: list[tuple[str, object]] = []
        self.dispose_count = 0

    async def embed(self, text):
        self.calls.append(("embed", text))
        if self.embed_error:
            raise InferenceError("model not available", stage="embed")
        return [0.1, 0.2, 0.3]

    async def rerank(self, query, texts):
        self.calls.append(("rerank", list(texts)))
        if self.rerank_delay:
            await asyncio.sleep(self.rerank_delay)
        if self.rerank_error:
            raise InferenceError("reranker busy", stage="rerank")
        if self.rerank_scores is None:
            return [1.0 / (i + 1) for i in range(len(texts))]
        return list(self.rerank_scores)

    async def expand(self, query):
        self.calls.append(("expand", query))
        if self.expand_delay:
            await asyncio.sleep(self.expand_delay)
        if self.expand_error:
            raise InferenceError("expansion model crashed", stage="expand")
        return list(self.expansions)

    async def dispose(self):
        self.dispose_count += 1

    def describe(self):
        return {"embedder_loaded": False, "reranker_loaded": False, "disposed": False}

    def stages(self) -> list[str]:
        return [name for name, _ in self.calls]


class UnavailableInference(FakeInference):
    """Inference resource where every call fails."""

    async def embed(self, text):
        self.calls.append(("embed", text))
        raise InferenceError("no device", stage="embed")

    async def rerank(self, query, texts):
        self.calls.append(("rerank", texts))
        raise InferenceError("no device", stage="rerank")

    async def expand(self, query):
        self.calls.append(("expand", query))
        raise InferenceError("no device", stage="expand")


class FakeContextIndex:
    def __init__(self, contexts=None):
        self.contexts = dict(contexts or {})

    def context_of(self, file_ref):
        return self.contexts.get(file_ref)


@pytest.fixture
def keyword_index():
    return FakeKeywordIndex()


@pytest.fixture
def vector_index():
    return FakeVectorIndex()


@pytest.fixture
def inference():
    return FakeInference()


@pytest.fixture
def context_index():
    return FakeContextIndex()


@pytest.fixture
def make_service(keyword_index, vector_index, inference, context_index):
    """Factory for a SearchService over the fake collaborators."""

    def _make(**overrides):
        kwargs = dict(
            keyword_index=keyword_index,
            vector_index=vector_index,
            inference=inference,
            context_index=context_index,
        )
        kwargs.update(overrides)
        return SearchService(**kwargs)

    return _make


@pytest.fixture
def index_error():
    return SearchIndexError("database is locked", stage="keyword")
