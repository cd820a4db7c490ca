"""LLM protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for the query expansion model."""

    async def expand_query(self, query: str) -> list[str]:
        """Suggest alternative phrasings of a search query.

        Args:
            query: User query.

        Returns:
            Related queries, possibly empty.
        """
        ...

    async def aclose(self) -> None:
        """Close the underlying client."""
        ...
