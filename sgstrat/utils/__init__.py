from . import (
    raster,
    vector,
)

from .raster import SpatialRaster
from .vector import SpatialVector

__all__ = [
    "SpatialRaster",
    "SpatialVector",
]
