# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: error and warning types
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

from typing import Optional

class ConfigurationError(ValueError):
    """
    Raised when the inputs to a sampling function are malformed. Raised
    before any sampling work is attempted.
    """

class AllocationShortfall(UserWarning):
    """
    Recoverable condition: a stratum (or the whole run when strata is None)
    could not receive its full quota, either because of the pixel ceiling or
    because the candidates ran out under the distance constraint.

    These are collected in the sampling report, they are never raised.
    """
    def __init__(self,
                 strata: Optional[int],
                 requested: int,
                 achieved: int,
                 reason: str):
        self.strata = strata
        self.requested = requested
        self.achieved = achieved
        self.reason = reason

        if strata is None:
            msg = "unable to reach {} samples ({}), {} allocated.".format(requested, reason, achieved)
        else:
            msg = "strata {}: {} of {} samples ({}).".format(strata, achieved, requested, reason)
        super().__init__(msg)

    @property
    def missing(self) -> int:
        return self.requested - self.achieved

class EmptyStratumWarning(UserWarning):
    """
    Recoverable condition: a stratum has no eligible cells once the access
    mask is applied, so it contributes zero samples.
    """
    def __init__(self, strata: int):
        self.strata = strata
        super().__init__("strata {} has no eligible cells.".format(strata))

__all__ = [
    "AllocationShortfall",
    "ConfigurationError",
    "EmptyStratumWarning",
]
