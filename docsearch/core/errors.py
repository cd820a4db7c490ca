"""Search error taxonomy.

Every error carries the pipeline stage that produced it so the facade can
report a single descriptive message plus the responsible stage.
"""


class SearchError(Exception):
    """Base class for request failures."""

    default_stage = "engine"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class ValidationError(SearchError):
    """Missing or malformed request parameter."""

    default_stage = "validation"


class SearchIndexError(SearchError):
    """Keyword or vector index unavailable."""

    default_stage = "index"


class InferenceError(SearchError):
    """Inference resource unavailable or returned malformed output."""

    default_stage = "inference"


class RequestTimeoutError(SearchError):
    """Caller-specified timeout elapsed before the request completed."""

    default_stage = "request"
