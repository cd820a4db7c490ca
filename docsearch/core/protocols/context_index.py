"""Context index protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ContextIndexProtocol(Protocol):
    """Breadcrumb lookup for a document reference. Pure and infallible."""

    def context_of(self, file_ref: str) -> Optional[str]:
        ...
