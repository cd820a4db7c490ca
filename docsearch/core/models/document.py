"""Document and search result domain models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

DOC_URI_SCHEME = "docs://"


class SourceChannel(str, Enum):
    """Retrieval channel a candidate came from."""
    KEYWORD = "keyword"
    VECTOR = "vector"


@dataclass(frozen=True)
class Candidate:
    """In-flight retrieval result for one chunk from one channel."""
    docid: str
    chunk_pos: int
    display_path: str
    title: str
    body: str
    raw_score: float
    source_channel: SourceChannel

    @property
    def key(self) -> tuple[str, int]:
        return (self.docid, self.chunk_pos)


@dataclass
class FusedCandidate:
    """Chunk merged across retrieval channels."""
    docid: str
    chunk_pos: int
    display_path: str
    title: str
    body: str
    final_score: float
    keyword_score: Optional[float] = None
    vector_score: Optional[float] = None
    rerank_score: Optional[float] = None

    @property
    def key(self) -> tuple[str, int]:
        return (self.docid, self.chunk_pos)

    @property
    def file_ref(self) -> str:
        return f"{DOC_URI_SCHEME}{self.display_path}"

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "FusedCandidate":
        """Wrap a single-channel candidate, scored by its raw score."""
        scores = {f"{candidate.source_channel.value}_score": candidate.raw_score}
        return cls(
            docid=candidate.docid,
            chunk_pos=candidate.chunk_pos,
            display_path=candidate.display_path,
            title=candidate.title,
            body=candidate.body,
            final_score=candidate.raw_score,
            **scores,
        )


def ranking_key(candidate: FusedCandidate) -> tuple[float, str, int]:
    """Score descending, then docid and chunk position ascending."""
    return (-candidate.final_score, candidate.docid, candidate.chunk_pos)


@dataclass(frozen=True)
class ExpandedQuery:
    """Original query plus related variants."""
    original: str
    variants: list[str] = field(default_factory=list)

    @property
    def all_queries(self) -> list[str]:
        return [self.original, *self.variants]


@dataclass(frozen=True)
class Snippet:
    """Excerpt of a chunk and its offset in the source text."""
    snippet: str
    start: int = 0


@dataclass(frozen=True)
class Result:
    """Externally visible search hit."""
    docid: str
    score: float
    display_path: str
    title: str
    snippet: str
    context: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape. ``context`` is left out entirely when absent or empty."""
        data: dict[str, Any] = {
            "docid": f"#{self.docid}",
            "score": self.score,
            "file": f"{DOC_URI_SCHEME}{self.display_path}",
            "title": self.title,
        }
        if self.context:
            data["context"] = self.context
        data["snippet"] = self.snippet
        return data
