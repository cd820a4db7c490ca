"""Protocol interfaces for dependency injection."""
from .context_index import ContextIndexProtocol
from .embedder import EmbedderProtocol
from .inference import InferenceProtocol
from .keyword_index import KeywordIndexProtocol
from .llm import LLMProtocol
from .reranker import RerankerProtocol
from .vector_store import VectorIndexProtocol

__all__ = [
    "ContextIndexProtocol",
    "EmbedderProtocol",
    "InferenceProtocol",
    "KeywordIndexProtocol",
    "LLMProtocol",
    "RerankerProtocol",
    "VectorIndexProtocol",
]
