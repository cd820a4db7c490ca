"""Tests for per-channel candidate retrieval."""

import asyncio

import pytest

from conftest import FakeInference, FakeVectorIndex, ScriptedKeywordIndex
from docsearch.core.errors import SearchIndexError
from docsearch.core.services.candidate_retriever import CandidateRetriever


class TestKeywordChannel:
    def test_results_concatenated_in_query_order(self):
        index = ScriptedKeywordIndex(delay=0.0)
        retriever = CandidateRetriever(index, FakeVectorIndex(), FakeInference())

        results = asyncio.run(retriever.keyword(["q", "alpha", "beta"], limit=5))

        assert [c.docid for c in results] == ["q", "alpha", "beta"]

    def test_failed_lookup_cancels_siblings(self):
        index = ScriptedKeywordIndex(failing={"q"})
        retriever = CandidateRetriever(index, FakeVectorIndex(), FakeInference())

        async def scenario():
            with pytest.raises(SearchIndexError):
                await retriever.keyword(["q", "alpha", "beta"], limit=5)
            await asyncio.sleep(index.delay * 1.5)

        asyncio.run(scenario())

        assert index.finished == []
        assert sorted(index.cancelled) == ["alpha", "beta"]

    def test_unexpected_errors_wrapped(self):
        class Broken:
            async def search_keyword(self, query, limit, collection=None):
                raise RuntimeError("disk I/O error")

        retriever = CandidateRetriever(Broken(), FakeVectorIndex(), FakeInference())

        with pytest.raises(SearchIndexError) as exc_info:
            asyncio.run(retriever.keyword(["q"], limit=5))

        assert exc_info.value.stage == "keyword"
        assert "disk I/O error" in str(exc_info.value)


class TestVectorChannel:
    def test_embeds_then_searches(self):
        inference = FakeInference()
        vectors = FakeVectorIndex()
        retriever = CandidateRetriever(ScriptedKeywordIndex(), vectors, inference)

        asyncio.run(retriever.vector("q", limit=4, collection="work"))

        assert inference.calls == [("embed", "q")]
        assert vectors.calls == [([0.1, 0.2, 0.3], 4, "work")]

    def test_unexpected_errors_wrapped(self):
        retriever = CandidateRetriever(
            ScriptedKeywordIndex(), FakeVectorIndex(error=ConnectionError("refused")), FakeInference()
        )

        with pytest.raises(SearchIndexError) as exc_info:
            asyncio.run(retriever.vector("q", limit=4))

        assert exc_info.value.stage == "vector"
