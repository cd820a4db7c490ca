"""Tests for query expansion."""

import asyncio

from conftest import FakeInference
from docsearch.core.services.query_expander import QueryExpander, dedupe_variants


class TestQueryExpander:
    """Tests for QueryExpander.expand."""

    def test_disabled_makes_no_call(self):
        inference = FakeInference(expansions=["other"])

        outcome = asyncio.run(QueryExpander(inference).expand("q", enabled=False))

        assert not outcome.degraded
        assert outcome.value.all_queries == ["q"]
        assert inference.calls == []

    def test_variants_deduplicated_and_capped(self):
        inference = FakeInference(
            expansions=["Cloudflare tunnel", "ssh tunnel", "SSH Tunnel", " ", "vpn", "proxy"]
        )
        expander = QueryExpander(inference, max_variants=2)

        outcome = asyncio.run(expander.expand("cloudflare TUNNEL"))

        assert not outcome.degraded
        assert outcome.value.original == "cloudflare TUNNEL"
        assert outcome.value.variants == ["ssh tunnel", "vpn"]

    def test_inference_error_degrades_to_original(self):
        outcome = asyncio.run(
            QueryExpander(FakeInference(expand_error=True)).expand("q")
        )

        assert outcome.degraded
        assert outcome.stage == "expand"
        assert "expansion model crashed" in outcome.reason
        assert outcome.value.all_queries == ["q"]

    def test_timeout_degrades(self):
        expander = QueryExpander(FakeInference(expand_delay=1.0), timeout=0.01)

        outcome = asyncio.run(expander.expand("q"))

        assert outcome.degraded
        assert "timed out" in outcome.reason
        assert outcome.value.variants == []

    def test_malformed_output_degrades(self):
        class Weird(FakeInference):
            async def expand(self, query):
                return "not a list"

        outcome = asyncio.run(QueryExpander(Weird()).expand("q"))

        assert outcome.degraded
        assert "malformed" in outcome.reason
        assert outcome.value.variants == []


class TestDedupeVariants:
    def test_original_never_repeated(self):
        assert dedupe_variants("Query", ["query", "QUERY ", "other"]) == ["other"]

    def test_order_preserved(self):
        assert dedupe_variants("q", ["b", "a", "B", "c"]) == ["b", "a", "c"]
