"""Keyword index protocol for dependency injection."""
from typing import Any, Optional, Protocol, runtime_checkable

from ..models.document import Candidate


@runtime_checkable
class KeywordIndexProtocol(Protocol):
    """Protocol for BM25 full-text search."""

    async def search_keyword(
        self, query: str, limit: int, collection: Optional[str] = None
    ) -> list[Candidate]:
        """Search chunks by keywords.

        Args:
            query: Query text.
            limit: Maximum number of candidates.
            collection: Restrict to one collection.

        Returns:
            At most ``limit`` candidates, best first.

        Raises:
            SearchIndexError: On storage failure.
        """
        ...

    async def status(self) -> dict[str, Any]:
        """Collections and document counts."""
        ...
