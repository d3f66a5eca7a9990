from . import (
    existing,
    srs,
    strat,
)

from .existing import existing
from .srs import srs
from .strat import strat

__all__ = [
    "existing",
    "srs",
    "strat",
]
