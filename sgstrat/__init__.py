from . import errors
from . import utils
from . import sample
from . import stratify

from .errors import (
    AllocationShortfall,
    ConfigurationError,
    EmptyStratumWarning,
)

from .utils import (
    SpatialRaster,
    SpatialVector,
)

from .sample import (
    existing,
    srs,
    strat,
)

from .stratify import (
    breaks,
    map,
)

__all__ = list(
    set(errors.__all__) |
    set(utils.__all__) |
    set(sample.__all__) |
    set(stratify.__all__)
)
