
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_prefix="DOCSEARCH_", env_file=".env", extra="ignore"
    )

    db_path: str = "./index.sqlite"

    chroma_host: str = "localhost"
    chroma_port: int = 8001
    chroma_collection: str = "docsearch_chunks"
    chroma_timeout: float = 10.0

    embedding_model: str = "intfloat/multilingual-e5-base"
    embedding_query_prefix: str = "query: "

    reranker_model: str = "BAAI/bge-reranker-v2-m3"
    reranker_batch_size: int = 32

    device: str = "cpu"

    # Query expansion (Ollama, OpenAI-compatible API)
    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen2.5:3b"
    llm_max_tokens: int = 256
    llm_temperature: float = 0.3
    max_expansions: int = 4
    expansion_timeout: float = 10.0

    rerank_timeout: float = 30.0

    candidate_multiplier: int = 5
    fast_candidate_limit: int = 5
    vsearch_default_min_score: float = 0.3

    keyword_weight: float = 0.5
    vector_weight: float = 0.5

    snippet_max_length: int = 300

    log_level: str = "INFO"


settings = Settings()
