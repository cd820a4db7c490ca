"""Inference resource protocol for dependency injection."""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class InferenceProtocol(Protocol):
    """Shared on-device model service.

    Implementations serialize access to the underlying models and raise
    ``InferenceError`` on any failure.
    """

    async def embed(self, text: str) -> list[float]:
        ...

    async def rerank(self, query: str, texts: list[str]) -> list[float]:
        ...

    async def expand(self, query: str) -> list[str]:
        ...

    async def dispose(self) -> None:
        """Release models once in-flight calls drain. Idempotent."""
        ...

    def describe(self) -> dict[str, Any]:
        ...
