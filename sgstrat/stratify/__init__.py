from . import (
    breaks,
    map,
)

from .breaks import breaks
from .map import map

__all__ = [
    "breaks",
    "map",
]
