"""Vector index protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.document import Candidate


@runtime_checkable
class VectorIndexProtocol(Protocol):
    """Protocol for embedding similarity search."""

    async def search_vector(
        self,
        vector: list[float],
        limit: int,
        collection: Optional[str] = None,
    ) -> list[Candidate]:
        """Search by embedding.

        Args:
            vector: Query vector.
            limit: Maximum number of candidates.
            collection: Restrict to one collection.

        Returns:
            At most ``limit`` candidates, most similar first.

        Raises:
            SearchIndexError: On storage failure.
        """
        ...

    async def aclose(self) -> None:
        """Release connections."""
        ...
