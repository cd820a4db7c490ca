import logging
from typing import Any, Optional

import httpx

from docsearch.core.errors import SearchIndexError
from docsearch.core.models.document import Candidate, SourceChannel

logger = logging.getLogger(__name__)


class ChromaVectorIndex:
    """Read-only vector index using ChromaDB HTTP API."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8001,
        collection_name: str = "documents",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize ChromaDB client.

        Args:
            host: ChromaDB host.
            port: ChromaDB port.
            collection_name: Collection holding chunk embeddings.
            tenant: Tenant name.
            database: Database name.
            timeout: HTTP timeout in seconds.
            transport: Custom httpx transport.
        """
        self._base_url = f"http://{host}:{port}/api/v2"
        self._tenant = tenant
        self._database = database
        self._collection_name = collection_name
        self._collection_id: Optional[str] = None
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def _collections_url(self) -> str:
        return f"{self._base_url}/tenants/{self._tenant}/databases/{self._database}/collections"

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def _ensure_collection(self) -> str:
        """Look up collection ID."""
        if self._collection_id:
            return self._collection_id

        resp = await self.client.get(self._collections_url)
        resp.raise_for_status()
        for col in resp.json():
            if col["name"] == self._collection_name:
                self._collection_id = col["id"]
                logger.info(f"Using collection: {self._collection_name}")
                return self._collection_id

        raise SearchIndexError(
            f"collection '{self._collection_name}' not found", stage="vector"
        )

    async def search_vector(
        self,
        vector: list[float],
        limit: int,
        collection: Optional[str] = None,
    ) -> list[Candidate]:
        """Search by embedding."""
        payload: dict[str, Any] = {
            "query_embeddings": [vector],
            "n_results": limit,
            "include": ["documents", "metadatas", "distances"],
        }
        if collection:
            payload["where"] = {"collection": collection}

        try:
            col_id = await self._ensure_collection()
            resp = await self.client.post(
                f"{self._collections_url}/{col_id}/query", json=payload
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise SearchIndexError(f"chroma request failed: {e}", stage="vector") from e

        try:
            return self._to_candidates(data)[:limit]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise SearchIndexError(f"malformed chroma response: {e}", stage="vector") from e

    def _to_candidates(self, data: dict[str, Any]) -> list[Candidate]:
        results = []

        if data.get("ids") and data["ids"][0]:
            for i in range(len(data["ids"][0])):
                distance = data["distances"][0][i]
                meta = data["metadatas"][0][i] or {}
                display_path = f"{meta['collection']}/{meta['path']}"

                results.append(
                    Candidate(
                        docid=str(meta["docid"]),
                        chunk_pos=int(meta["chunk_pos"]),
                        display_path=display_path,
                        title=meta.get("title") or display_path,
                        body=data["documents"][0][i] or "",
                        raw_score=1.0 - distance,
                        source_channel=SourceChannel.VECTOR,
                    )
                )

        return results

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
