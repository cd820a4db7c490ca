"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable
import numpy as np


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding model."""

    def encode(self, texts: str | list[str]) -> np.ndarray:
        """Encode text(s) to embeddings.

        Args:
            texts: Single text or list of texts to encode.

        Returns:
            Numpy array of embeddings.
        """
        ...

    def unload(self) -> None:
        """Drop the loaded model."""
        ...

    @property
    def loaded(self) -> bool:
        ...
