"""Score fusion strategies."""
from .fusion import FusionPolicy, MinMaxFusionPolicy, min_max_normalize

__all__ = [
    "FusionPolicy",
    "MinMaxFusionPolicy",
    "min_max_normalize",
]
