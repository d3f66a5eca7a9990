# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: allocation of samples between strata
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional

import numpy as np
import pandas as pd

from sgstrat.errors import (
    AllocationShortfall,
    ConfigurationError,
    EmptyStratumWarning,
)

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6

class Allocation(Enum):
    PROP = "prop"
    OPTIM = "optim"
    EQUAL = "equal"
    MANUAL = "manual"

@dataclass(frozen=True, eq=False)
class StratumSummary:
    """
    Per-stratum pixel counts used to allocate samples.

    counts holds every data pixel of a stratum (the area), available holds
    only the pixels which may be sampled once access buffering is applied.
    variance is only calculated for optim allocation.
    """
    strata: np.ndarray
    counts: np.ndarray
    available: np.ndarray
    variance: Optional[np.ndarray] = None
    categories: Optional[dict[int, str]] = None

    @classmethod
    def from_arrays(
        cls,
        values: np.ndarray,
        eligible: np.ndarray,
        metric: Optional[np.ndarray] = None,
        categories: Optional[dict[int, str]] = None):
        """
        Summarizes a stratification band.

        Parameters
        --------------------
        values : np.ndarray
            the stratification band, NaN where there is no data
        eligible : np.ndarray
            boolean array of the cells which may be sampled
        metric : np.ndarray
            the metric band used for optim allocation
        categories : dict[int, str]
            optional stratum labels
        """
        valid = ~np.isnan(values)
        (strata, counts) = np.unique(values[valid], return_counts=True)

        if np.any(strata < 0) or np.any(strata != np.floor(strata)):
            raise ConfigurationError("stratification raster values must be non-negative integers.")

        (eligible_strata, eligible_counts) = np.unique(values[valid & eligible], return_counts=True)
        available = np.zeros(len(strata), dtype=np.int64)
        available[np.searchsorted(strata, eligible_strata)] = eligible_counts

        variance = None
        if metric is not None:
            if metric.shape != values.shape:
                raise ConfigurationError("the metric band must have the same shape as the stratification band.")

            variance = np.zeros(len(strata))
            for i, stratum in enumerate(strata):
                m = metric[values == stratum]
                m = m[~np.isnan(m)]
                if m.size > 1:
                    variance[i] = np.var(m, ddof=1)

        return cls(
            strata=strata.astype(np.int64),
            counts=counts.astype(np.int64),
            available=available,
            variance=variance,
            categories=categories,
        )

    def __len__(self):
        return len(self.strata)

    @property
    def total_area(self) -> int:
        return int(self.counts.sum())

@dataclass(frozen=True)
class Proportional:
    kind: ClassVar[Allocation] = Allocation.PROP

    def quotas(self, num_samples: int, summary: StratumSummary) -> np.ndarray:
        return num_samples * summary.counts / summary.total_area

@dataclass(frozen=True, eq=False)
class Optimal:
    """
    Allocation proportional to stratum area times the standard deviation of
    the metric within the stratum (Gregoire and Valentine, section 5.4.4).
    """
    metric: np.ndarray
    kind: ClassVar[Allocation] = Allocation.OPTIM

    def quotas(self, num_samples: int, summary: StratumSummary) -> np.ndarray:
        if summary.variance is None:
            raise ConfigurationError("optim allocation requires the metric variance of each stratum.")

        weights = summary.counts * np.sqrt(summary.variance)
        if weights.sum() == 0:
            raise ConfigurationError("the metric band has no variance within any strata, optim allocation is undefined.")

        return num_samples * weights / weights.sum()

@dataclass(frozen=True)
class Equal:
    kind: ClassVar[Allocation] = Allocation.EQUAL

    def quotas(self, num_samples: int, summary: StratumSummary) -> np.ndarray:
        return np.full(len(summary), float(num_samples))

@dataclass(frozen=True)
class Manual:
    weights: tuple[float, ...]
    kind: ClassVar[Allocation] = Allocation.MANUAL

    def quotas(self, num_samples: int, summary: StratumSummary) -> np.ndarray:
        if len(self.weights) != len(summary):
            raise ConfigurationError("length of 'weights' must be the same as the number of strata, which is {}".format(len(summary)))

        return num_samples * np.asarray(self.weights)

AllocationPolicy = Proportional | Optimal | Equal | Manual

def allocation_policy(
    allocation: str,
    weights: Optional[list[float]] = None,
    metric: Optional[np.ndarray] = None) -> AllocationPolicy:
    """
    Creates the allocation policy for an allocation name.

    Raises
    --------------------
    ConfigurationError:
        if the allocation is not supported, manual weights are missing, negative,
        or do not sum to 1, or the optim metric is missing
    """
    try:
        kind = Allocation(allocation)
    except ValueError:
        raise ConfigurationError("allocation must be one of 'prop', 'optim', 'equal', or 'manual'.") from None

    if kind is Allocation.MANUAL:
        if weights is None:
            raise ConfigurationError("for manual allocation, weights must be given.")

        weights = np.asarray(weights, dtype=np.float64)
        if weights.ndim != 1 or len(weights) == 0:
            raise ConfigurationError("weights must be a list of floats.")

        if np.any(weights < 0):
            raise ConfigurationError("weights must not be negative.")

        if abs(weights.sum() - 1) > WEIGHT_TOLERANCE:
            raise ConfigurationError("weights must sum to 1.")

        return Manual(tuple(float(w) for w in weights))

    if weights is not None:
        logger.warning("weights are only used by manual allocation, ignoring them for '%s'.", kind.value)

    if kind is Allocation.OPTIM:
        if metric is None:
            raise ConfigurationError("a metric band must be provided if allocation is 'optim'.")
        return Optimal(np.asarray(metric, dtype=np.float64))

    if kind is Allocation.EQUAL:
        return Equal()

    return Proportional()

def largest_remainder(quotas: np.ndarray, total: int) -> np.ndarray:
    """
    Rounds quotas to integers summing to total. Quotas are floored, then the
    remaining units go one at a time to the largest fractional remainders,
    ties going to the lowest index (the lowest stratum).
    """
    quotas = np.asarray(quotas, dtype=np.float64)
    nearest = np.round(quotas)
    quotas = np.where(np.isclose(quotas, nearest, rtol=0, atol=1e-9), nearest, quotas)

    targets = np.floor(quotas).astype(np.int64)
    remainder = quotas - targets
    missing = int(total - targets.sum())

    if missing > 0:
        order = np.lexsort((np.arange(len(quotas)), -remainder))
        targets[order[:missing]] += 1

    return targets

def redistribute(needed: np.ndarray, ceiling: np.ndarray) -> np.ndarray:
    """
    Caps targets at their ceiling, handing the excess to the strata which
    still have room in proportion to their current targets. Repeats until
    no target is over its ceiling or no stratum has room left.
    """
    targets = needed.astype(np.int64)
    capped = np.zeros(len(targets), dtype=bool)

    while True:
        over = targets > ceiling
        if not over.any():
            break

        excess = int((targets[over] - ceiling[over]).sum())
        targets[over] = ceiling[over]
        capped |= over

        room = ~capped & (targets < ceiling)
        if not room.any():
            break

        weights = targets[room].astype(np.float64)
        if weights.sum() == 0:
            weights = np.ones(len(weights))

        targets[room] += largest_remainder(excess * weights / weights.sum(), excess)

    return targets

@dataclass
class AllocationPlan:
    """
    Per-stratum allocation.

    requested is the policy target, existing the number of existing samples
    per stratum, residual = requested - existing (negative when a stratum is
    over-represented), and allocated the number of new samples to select.
    """
    strata: np.ndarray
    counts: np.ndarray
    available: np.ndarray
    requested: np.ndarray
    existing: np.ndarray
    residual: np.ndarray
    needed: np.ndarray
    allocated: np.ndarray
    warnings: list[Warning] = field(default_factory=list)

    @property
    def total(self) -> int:
        return int(self.allocated.sum())

    def target(self, stratum: int) -> int:
        return int(self.allocated[np.searchsorted(self.strata, stratum)])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "strata": self.strata,
            "pixels": self.counts,
            "available": self.available,
            "requested": self.requested,
            "existing": self.existing,
            "residual": self.residual,
            "allocated": self.allocated,
        })

def allocate(
    policy: AllocationPolicy,
    num_samples: int,
    summary: StratumSummary,
    existing: Optional[dict[int, int]] = None,
    include: bool = True,
    force: bool = False) -> AllocationPlan:
    """
    Calculates the number of new samples to select in each stratum.

    If existing sample counts are given, each strata's residual is its target
    minus its existing count. With include set, existing samples count toward
    num_samples and only the positive residual is allocated, otherwise the
    full target is allocated on top of the existing samples.

    Targets are capped at the number of available pixels. If force is set
    the capped excess is redistributed over the remaining strata, otherwise
    the stratum simply falls short. Shortfalls and empty strata are recorded
    as warnings on the plan, never raised.

    Parameters
    --------------------
    policy : AllocationPolicy
        the allocation policy, see allocation_policy()
    num_samples : int
        the desired number of samples
    summary : StratumSummary
        per-stratum pixel counts
    existing : dict[int, int]
        number of existing samples per stratum
    include : bool
        whether existing samples count toward num_samples
    force : bool
        whether to redistribute samples which exceed a strata's pixel count

    Raises
    --------------------
    ConfigurationError:
        if num_samples is less than 1, there are no strata, or the policy cannot be applied
    """
    if num_samples < 1:
        raise ConfigurationError("num_samples must be greater than 0")

    if len(summary) == 0:
        raise ConfigurationError("the stratification raster contains no strata.")

    quotas = policy.quotas(num_samples, summary)
    if policy.kind is Allocation.EQUAL:
        requested = quotas.astype(np.int64)
    else:
        requested = largest_remainder(quotas, num_samples)

    existing_counts = np.zeros(len(summary), dtype=np.int64)
    if existing:
        for stratum, count in existing.items():
            i = np.searchsorted(summary.strata, stratum)
            if i == len(summary) or summary.strata[i] != stratum:
                logger.warning("existing samples in strata %s which is not in the stratification raster are not credited.", stratum)
                continue
            existing_counts[i] += count

    residual = requested - existing_counts
    needed = np.maximum(residual, 0) if include else requested.copy()

    warnings = []
    for stratum in summary.strata[summary.available == 0]:
        warnings.append(EmptyStratumWarning(int(stratum)))

    if force:
        allocated = redistribute(needed, summary.available)
        if allocated.sum() < needed.sum():
            warnings.append(AllocationShortfall(None, int(needed.sum()), int(allocated.sum()), "every strata is at its pixel ceiling"))
    else:
        allocated = np.minimum(needed, summary.available)
        for i in np.flatnonzero(allocated < needed):
            warnings.append(AllocationShortfall(int(summary.strata[i]), int(needed[i]), int(allocated[i]), "pixel ceiling"))

    for warning in warnings:
        logger.warning(str(warning))

    logger.debug("allocated %d samples over %d strata using '%s' allocation", int(allocated.sum()), len(summary), policy.kind.value)

    return AllocationPlan(
        strata=summary.strata,
        counts=summary.counts,
        available=summary.available,
        requested=requested,
        existing=existing_counts,
        residual=residual,
        needed=needed,
        allocated=allocated,
        warnings=warnings,
    )
