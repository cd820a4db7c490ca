import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def configure_container(
    settings: Settings, target: Container | None = None
) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.
        target: Container to populate (defaults to the module container).

    Returns:
        Configured container.
    """
    from .core.protocols.context_index import ContextIndexProtocol
    from .core.protocols.inference import InferenceProtocol
    from .core.protocols.keyword_index import KeywordIndexProtocol
    from .core.protocols.vector_store import VectorIndexProtocol
    from .core.services.candidate_fuser import CandidateFuser
    from .core.services.query_expander import QueryExpander
    from .core.services.reranker_adapter import RerankerAdapter
    from .core.services.search_service import SearchService
    from .core.strategies.fusion import MinMaxFusionPolicy
    from .infrastructure.document_store.path_context import PathContextIndex
    from .infrastructure.document_store.sqlite_store import SqliteDocumentStore
    from .infrastructure.embeddings.sentence_transformer import (
        SentenceTransformerEmbedder,
    )
    from .infrastructure.inference.local_inference import LocalInference
    from .infrastructure.llm.ollama_client import OllamaClient
    from .infrastructure.rerankers.cross_encoder import CrossEncoderReranker
    from .infrastructure.vector_stores.chroma_store import ChromaVectorIndex

    if target is None:
        target = container

    target.register(
        InferenceProtocol,
        lambda: LocalInference(
            embedder=SentenceTransformerEmbedder(
                settings.embedding_model, device=settings.device
            ),
            reranker=CrossEncoderReranker(
                settings.reranker_model,
                device=settings.device,
                batch_size=settings.reranker_batch_size,
            ),
            llm=OllamaClient(
                base_url=settings.llm_base_url,
                model=settings.llm_model,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
                max_expansions=settings.max_expansions,
            ),
            query_prefix=settings.embedding_query_prefix,
        ),
        singleton=True,
    )

    target.register(
        SqliteDocumentStore,
        lambda: SqliteDocumentStore(settings.db_path),
        singleton=True,
    )

    target.register(
        KeywordIndexProtocol,
        lambda: target.resolve(SqliteDocumentStore),
        singleton=True,
    )

    target.register(
        ContextIndexProtocol,
        lambda: PathContextIndex(target.resolve(SqliteDocumentStore).load_contexts()),
        singleton=True,
    )

    target.register(
        VectorIndexProtocol,
        lambda: ChromaVectorIndex(
            host=settings.chroma_host,
            port=settings.chroma_port,
            collection_name=settings.chroma_collection,
            timeout=settings.chroma_timeout,
        ),
        singleton=True,
    )

    target.register(
        SearchService,
        lambda: SearchService(
            keyword_index=target.resolve(KeywordIndexProtocol),
            vector_index=target.resolve(VectorIndexProtocol),
            inference=target.resolve(InferenceProtocol),
            context_index=target.resolve(ContextIndexProtocol),
            expander=QueryExpander(
                target.resolve(InferenceProtocol),
                timeout=settings.expansion_timeout,
                max_variants=settings.max_expansions,
            ),
            fuser=CandidateFuser(
                MinMaxFusionPolicy(
                    keyword_weight=settings.keyword_weight,
                    vector_weight=settings.vector_weight,
                )
            ),
            reranker=RerankerAdapter(
                target.resolve(InferenceProtocol),
                timeout=settings.rerank_timeout,
            ),
            candidate_multiplier=settings.candidate_multiplier,
            fast_candidate_limit=settings.fast_candidate_limit,
            vsearch_default_min_score=settings.vsearch_default_min_score,
            snippet_max_length=settings.snippet_max_length,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return target
