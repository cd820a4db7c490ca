"""Read-only access to the SQLite document store written by ingestion."""

import asyncio
import logging
import re
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any, Optional

from docsearch.core.errors import SearchIndexError
from docsearch.core.models.document import DOC_URI_SCHEME, Candidate, SourceChannel

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

KEYWORD_SQL = """
SELECT c.docid, c.pos, d.collection, d.path, d.title, c.body,
       -bm25(chunks_fts) AS score
FROM chunks_fts
JOIN chunks c ON c.id = chunks_fts.rowid
JOIN documents d ON d.docid = c.docid AND d.collection = c.collection
WHERE chunks_fts MATCH :match
  AND d.active = 1
  AND (:collection IS NULL OR d.collection = :collection)
ORDER BY score DESC, c.docid, c.pos
LIMIT :limit
"""


def build_fts_query(query: str) -> Optional[str]:
    """Quote each query token as a prefix term and AND them together.

    Returns None when the query has no searchable tokens.
    """
    tokens = _TOKEN_RE.findall(query.lower())
    if not tokens:
        return None
    return " AND ".join(f'"{t}"*' for t in dict.fromkeys(tokens))


class SqliteDocumentStore:
    """BM25 keyword search, status and contexts over an FTS5 database."""

    def __init__(self, db_path: str):
        """Initialize store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        if not self._db_path.exists():
            raise SearchIndexError(f"database not found: {self._db_path}", stage="keyword")
        conn = sqlite3.connect(f"file:{self._db_path}?mode=ro", uri=True)
        conn.row_factory = sqlite3.Row
        return conn

    async def search_keyword(
        self, query: str, limit: int, collection: Optional[str] = None
    ) -> list[Candidate]:
        """Search chunks by keywords, best BM25 score first."""
        match = build_fts_query(query)
        if match is None:
            return []
        return await asyncio.to_thread(self._search_keyword, match, limit, collection)

    def _search_keyword(
        self, match: str, limit: int, collection: Optional[str]
    ) -> list[Candidate]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    KEYWORD_SQL,
                    {"match": match, "collection": collection, "limit": limit},
                ).fetchall()
        except sqlite3.Error as e:
            raise SearchIndexError(f"keyword search failed: {e}", stage="keyword") from e

        candidates = []
        for row in rows:
            display_path = f"{row['collection']}/{row['path']}"
            candidates.append(
                Candidate(
                    docid=row["docid"],
                    chunk_pos=row["pos"],
                    display_path=display_path,
                    title=row["title"] or display_path,
                    body=row["body"] or "",
                    raw_score=float(row["score"]),
                    source_channel=SourceChannel.KEYWORD,
                )
            )
        return candidates

    async def status(self) -> dict[str, Any]:
        """Collections with active document counts."""
        return await asyncio.to_thread(self._status)

    def _status(self) -> dict[str, Any]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    "SELECT collection, COUNT(*) AS n FROM documents "
                    "WHERE active = 1 GROUP BY collection ORDER BY collection"
                ).fetchall()
                chunk_count = conn.execute(
                    "SELECT COUNT(*) FROM chunks c JOIN documents d "
                    "ON d.docid = c.docid AND d.collection = c.collection "
                    "WHERE d.active = 1"
                ).fetchone()[0]
        except sqlite3.Error as e:
            raise SearchIndexError(f"status query failed: {e}", stage="status") from e

        collections = [{"name": r["collection"], "documents": r["n"]} for r in rows]
        return {
            "collections": collections,
            "documentCount": sum(c["documents"] for c in collections),
            "chunkCount": chunk_count,
        }

    def load_contexts(self) -> dict[str, str]:
        """Path prefix to breadcrumb mapping, prefixes as document URIs."""
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute("SELECT prefix, context FROM path_contexts").fetchall()
        except (sqlite3.Error, SearchIndexError) as e:
            logger.warning(f"No path contexts loaded: {e}")
            return {}

        contexts = {}
        for row in rows:
            prefix = row["prefix"]
            if not prefix.startswith(DOC_URI_SCHEME):
                prefix = f"{DOC_URI_SCHEME}{prefix.lstrip('/')}"
            contexts[prefix] = row["context"]
        logger.info(f"Loaded {len(contexts)} path contexts")
        return contexts
