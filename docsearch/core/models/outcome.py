"""Tagged outcome of an optional pipeline stage."""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Value produced by a stage, flagged when it fell back.

    A degraded outcome still carries a usable value (the fallback) together
    with the reason the stage could not do its full job.
    """
    stage: str
    value: T
    reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.reason is not None

    @classmethod
    def ok(cls, stage: str, value: T) -> "StageOutcome[T]":
        return cls(stage=stage, value=value)

    @classmethod
    def fallback(cls, stage: str, value: T, reason: str) -> "StageOutcome[T]":
        return cls(stage=stage, value=value, reason=reason)
