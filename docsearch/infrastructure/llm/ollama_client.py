
import logging
import re

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

EXPAND_SYSTEM_PROMPT = """You rewrite search queries for a local document search engine.

Given a query, write alternative search queries that would find the same documents:
- synonyms and related technical terms
- expanded abbreviations
- shorter keyword-only forms

Rules:
- One query per line.
- No numbering, no explanations, no quotes.
- Keep each query under 10 words."""

_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


class OllamaClient:
    """Query expansion client for Ollama (OpenAI-compatible API)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "qwen2.5:3b",
        max_tokens: int = 256,
        temperature: float = 0.3,
        max_expansions: int = 4,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API URL.
            model: Model name.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            max_expansions: Number of alternative queries requested.
        """
        self._base_url = base_url
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._max_expansions = max_expansions
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(base_url=self._base_url, api_key="ollama")
        return self._client

    async def expand_query(self, query: str) -> list[str]:
        """Ask the model for alternative phrasings of a query.

        Args:
            query: User query.

        Returns:
            Alternative queries, one per non-empty response line.

        Raises:
            ValueError: If the model returns no content.
        """
        response = await self.client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": EXPAND_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Write {self._max_expansions} alternative queries for: {query}",
                },
            ],
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("empty expansion response")

        lines = [_LIST_MARKER_RE.sub("", line).strip().strip('"') for line in content.splitlines()]
        variants = [line for line in lines if line]
        logger.debug(f"[expand] '{query[:60]}' -> {variants}")
        return variants

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
