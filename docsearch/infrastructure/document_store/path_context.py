from typing import Optional


class PathContextIndex:
    """Breadcrumb lookup where the longest matching path prefix wins."""

    def __init__(self, contexts: dict[str, str] | None = None):
        # Longest first so the first hit is the most specific
        self._entries = sorted(
            (contexts or {}).items(), key=lambda item: (-len(item[0]), item[0])
        )

    def context_of(self, file_ref: str) -> Optional[str]:
        for prefix, context in self._entries:
            if _matches(file_ref, prefix) and context:
                return context
        return None


def _matches(file_ref: str, prefix: str) -> bool:
    """Prefix match on whole path segments."""
    if not file_ref.startswith(prefix):
        return False
    if len(file_ref) == len(prefix) or prefix.endswith("/"):
        return True
    return file_ref[len(prefix)] == "/"
