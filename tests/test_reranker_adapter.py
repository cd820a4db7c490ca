"""Tests for the reranking stage."""

import asyncio
import math

import pytest

from conftest import FakeInference, kw
from docsearch.core.models.document import FusedCandidate
from docsearch.core.services.reranker_adapter import RerankerAdapter


@pytest.fixture
def candidates():
    fused = [FusedCandidate.from_candidate(kw(d, 0, s)) for d, s in (("a", 3.0), ("b", 2.0))]
    return fused


class TestRerankerAdapter:
    """Tests for RerankerAdapter.rerank."""

    def test_skip_returns_input(self, candidates):
        inference = FakeInference()

        outcome = asyncio.run(RerankerAdapter(inference).rerank("q", candidates, skip=True))

        assert outcome.value is candidates
        assert not outcome.degraded
        assert inference.calls == []

    def test_empty_makes_no_call(self):
        inference = FakeInference()

        outcome = asyncio.run(RerankerAdapter(inference).rerank("q", []))

        assert outcome.value == []
        assert inference.calls == []

    def test_scores_replace_final_without_mutating_input(self, candidates):
        inference = FakeInference(rerank_scores=[0.2, 0.9])

        outcome = asyncio.run(RerankerAdapter(inference).rerank("q", candidates))

        assert not outcome.degraded
        assert [(c.docid, c.final_score, c.rerank_score) for c in outcome.value] == [
            ("a", 0.2, 0.2),
            ("b", 0.9, 0.9),
        ]
        assert candidates[0].final_score == 3.0
        assert candidates[0].rerank_score is None
        # One batched call with every body
        assert inference.calls == [("rerank", ["Body of a chunk 0", "Body of b chunk 0"])]

    @pytest.mark.parametrize(
        "scores,fragment",
        [
            ([0.5], "expected 2"),
            ([0.5, math.nan], "invalid"),
            ([0.5, True], "invalid"),
            ([0.5, "high"], "invalid"),
        ],
    )
    def test_bad_scores_fall_back(self, candidates, scores, fragment):
        outcome = asyncio.run(
            RerankerAdapter(FakeInference(rerank_scores=scores)).rerank("q", candidates)
        )

        assert outcome.degraded
        assert fragment in outcome.reason
        assert outcome.value is candidates

    def test_inference_error_falls_back(self, candidates):
        outcome = asyncio.run(
            RerankerAdapter(FakeInference(rerank_error=True)).rerank("q", candidates)
        )

        assert outcome.degraded
        assert outcome.reason == "reranker busy"
        assert outcome.value is candidates

    def test_timeout_falls_back(self, candidates):
        adapter = RerankerAdapter(FakeInference(rerank_delay=1.0), timeout=0.01)

        outcome = asyncio.run(adapter.rerank("q", candidates))

        assert outcome.degraded
        assert "timed out" in outcome.reason
