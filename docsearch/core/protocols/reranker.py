"""Reranker protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class RerankerProtocol(Protocol):
    """Protocol for relevance scoring model."""

    def score(self, query: str, texts: list[str]) -> list[float]:
        """Score each text against the query.

        Args:
            query: User query.
            texts: Candidate texts.

        Returns:
            One relevance score per text, in input order.
        """
        ...

    def unload(self) -> None:
        """Drop the loaded model."""
        ...

    @property
    def loaded(self) -> bool:
        ...
