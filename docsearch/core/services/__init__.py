"""Core search services."""
from .candidate_fuser import CandidateFuser
from .candidate_retriever import CandidateRetriever
from .query_expander import QueryExpander
from .reranker_adapter import RerankerAdapter
from .search_service import SearchService
from .snippet import extract_snippet

__all__ = [
    "CandidateFuser",
    "CandidateRetriever",
    "QueryExpander",
    "RerankerAdapter",
    "SearchService",
    "extract_snippet",
]
