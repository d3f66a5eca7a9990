# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: stratified sampling
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import logging
from dataclasses import dataclass
from typing import Optional

import geopandas as gpd
import numpy as np
import pandas as pd

from sgstrat.errors import (
    AllocationShortfall,
    ConfigurationError,
    EmptyStratumWarning,
)
from sgstrat.sample.access import eligible_cells
from sgstrat.sample.existing.existing import existing_strata as strata_of_existing
from sgstrat.sample.strat.allocation import (
    Optimal,
    StratumSummary,
    allocate,
    allocation_policy,
)
from sgstrat.sample.strat.queinnec import (
    check_window,
    rank_candidates,
)
from sgstrat.sample.strat.selection import (
    AcceptedSample,
    Selector,
)
from sgstrat.utils import (
    SpatialRaster,
    SpatialVector,
)

logger = logging.getLogger(__name__)

METHODS = ["random", "Queinnec"]

@dataclass
class SamplingReport:
    """
    Per-stratum summary of a stratified sampling run.

    table has one row per stratum with the columns strata, pixels, available,
    requested, existing, residual, allocated, sampled and shortfall. warnings
    holds the AllocationShortfall and EmptyStratumWarning instances raised
    along the way.
    """
    table: pd.DataFrame
    warnings: list[Warning]

    @property
    def shortfalls(self) -> list[AllocationShortfall]:
        return [w for w in self.warnings if isinstance(w, AllocationShortfall)]

    @property
    def empty_strata(self) -> list[int]:
        return [w.strata for w in self.warnings if isinstance(w, EmptyStratumWarning)]

def count_strata(strata: np.ndarray) -> dict[int, int]:
    (values, counts) = np.unique(strata[~np.isnan(strata)], return_counts=True)
    return {int(v): int(c) for v, c in zip(values, counts)}

def samples_frame(rows: list[AcceptedSample], crs=None) -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {
            "strata": pd.array([s.strata for s in rows], dtype="Int64"),
            "rule": pd.array([s.rule for s in rows], dtype="object"),
            "type": pd.array([s.type for s in rows], dtype="object"),
        },
        geometry=gpd.points_from_xy([s.x for s in rows], [s.y for s in rows]),
        crs=crs.to_wkt() if crs is not None else None,
    )

def strat(
    strat_rast: SpatialRaster,
    num_samples: int,
    wrow: int = 3,
    wcol: int = 3,
    band: Optional[int | str] = None,
    allocation: str = "prop",
    weights: Optional[list[float]] = None,
    mrast: Optional[SpatialRaster] = None,
    mrast_band: Optional[int | str] = None,
    method: str = "Queinnec",
    mindist: Optional[int | float] = None,
    existing: Optional[SpatialVector] = None,
    existing_strata: Optional[str] = None,
    include: bool = True,
    force: bool = False,
    access: Optional[SpatialVector | SpatialRaster] = None,
    layer_name: Optional[str] = None,
    buff_inner: Optional[int | float] = None,
    buff_outer: Optional[int | float] = None,
    stratum_mindist: bool = False,
    seed: Optional[int] = None,
    filename: str = "",
    details: bool = False,
    ):
    """
    This function conducts stratified sampling using the stratified
    raster given. There are two methods employed to determine which
    pixels to sample:
     - The 'random' method randomly selects pixels within a given strata.
     - The 'Queinnec' method prioritizes pixels which are surrounded by other
    pixels of the same strata. Every eligible pixel is ranked by the number of
    eligible same-strata pixels in its wrow x wcol focal window (itself
    included), highest first, ties in row then column order. Pixels with at
    least one such neighbour are selected first (rule1), isolated pixels are
    only used once those are exhausted (rule2).

    The number of total samples is given by num_samples. The allocation
    of samples per strata is calculated given the distribution of pixels
    in each strata, and the allocation method specified by the allocation parameter:
     - 'prop' allocates proportionally to the number of pixels in each strata.
     - 'equal' allocates num_samples to EVERY strata.
     - 'manual' allocates according to the weights parameter, one weight per
    strata in ascending strata order, summing to 1.
     - 'optim' allocates proportionally to the number of pixels times the standard
    deviation of the mrast band within the strata. Gregoire and Valentine
    https://doi.org/10.1201/9780203498880 Section 5.4.4.
    Rounding is corrected so the allocation sums to exactly num_samples (except
    for 'equal'). A strata is never allocated more samples than it has available
    pixels. If force is True, samples which would exceed this limit are
    redistributed over the other strata.

    The 'existing' parameter, if passed, must be a SpatialVector of Point geometries with
    a single layer. These points specify samples within an already-existing network. Their
    strata are taken from the existing_strata column if given, otherwise from the
    pixel containing them. Existing samples always count toward the minimum distance. If
    include is True they count toward num_samples and are part of the output, otherwise
    num_samples new samples are selected in addition to them.

    The 'access' parameter, if passed, must be a SpatialVector of type LineString or
    MultiLineString, or a single band SpatialRaster of distances to the access network.
    Only pixels further than buff_inner and no further than buff_outer from the access
    network are sampled. For a multi-layer vector, layer_name must be specified.

    mindist is the minimum distance between any two samples, existing samples included.
    If stratum_mindist is True it only applies between samples of the same strata.

    Examples
    --------------------
    srast = sgstrat.breaks(rast, breaks={'zq90': [3, 5, 11, 18]})
    samples = sgstrat.strat(srast, num_samples=200, band='strat_zq90') #Queinnec method with proportional allocation

    samples = sgstrat.strat(srast, band='strat_zq90', num_samples=200, method="random", mindist=200, seed=1)

    samples = sgstrat.strat(srast, band='strat_zq90', num_samples=200, allocation="optim", mrast=rast, mrast_band='zq90')

    samples, report = sgstrat.strat(srast, band='strat_zq90', num_samples=200, existing=plots, access=roads, buff_inner=50, buff_outer=200, details=True)

    Parameters
    --------------------
    strat_rast : SpatialRaster
        the raster to sample
    num_samples : int
        the desired number of samples
    wrow : int
        the number of rows in the focal window for the 'Queinnec' method, odd and at least 1
    wcol : int
        the number of columns in the focal window for the 'Queinnec' method, odd and at least 1
    band : Optional[int | str]
        the band within the strat_rast to use, required if strat_rast has more than 1 band
    allocation : str
        the allocation method to determine the number of samples per strata. One of 'prop', 'equal', 'optim', or 'manual'
    weights : list[float]
        the allocation percentages of each strata if the allocation method is 'manual'
    mrast : SpatialRaster
        the raster used to calculate 'optim' allocation
    mrast_band : str | int
        specifies the band within mrast to use
    method : str
        the sampling method, either 'random', or 'Queinnec'
    mindist : float
        the minimum distance allowed between sample points
    existing : SpatialVector
        a vector of Points which are part of a pre-existing sample network
    existing_strata : str
        the attribute of existing holding each samples strata
    include : bool
        whether existing samples count toward num_samples and are included in the output
    force : bool
        whether to redistribute samples which exceed a strata's available pixels
    access : SpatialVector | SpatialRaster
        a vector of LineString or MultiLineString geometries, or a distance raster, to sample near to
    layer_name : str
        the layer within 'access' to use for access buffering
    buff_inner : float
        the inner buffer around the access network, where samples should not occur
    buff_outer : float
        the outer buffer around the access network, The area in which samples must occur
    stratum_mindist : bool
        whether mindist only applies between samples of the same strata
    seed : int
        seed of the random number generator used by the 'random' method
    filename : str
        the output filename to write to if desired
    details : bool
        whether to also return a SamplingReport

    Raises
    --------------------
    TypeError:
        if a parameter is of the wrong type
    ConfigurationError:
        if the parameters are invalid, checked before any sampling is done

    Returns
    --------------------
    a SpatialVector with a 'samples' layer of Point geometries with the columns
    'strata', 'rule' and 'type', and a SamplingReport if details is True
    """
    if type(strat_rast) is not SpatialRaster:
        raise TypeError("'strat_rast' parameter must be of type sgstrat.SpatialRaster.")

    if band is not None and type(band) not in [int, str]:
        raise TypeError("'band' parameter, if given, must be of type int or str.")

    if type(num_samples) is not int:
        raise TypeError("'num_samples' parameter must be of type int.")

    if type(wrow) is not int:
        raise TypeError("'wrow' parameter must be of type int.")

    if type(wcol) is not int:
        raise TypeError("'wcol' parameter must be of type int.")

    if type(allocation) is not str:
        raise TypeError("'allocation' parameter must be of type str.")

    if weights is not None and type(weights) is not list:
        raise TypeError("'weights' parameter, if given, must be a list of float values.")

    if mrast is not None and type(mrast) is not SpatialRaster:
        raise TypeError("'mrast' parameter, if given, must be of type sgstrat.SpatialRaster.")

    if mrast_band is not None and type(mrast_band) not in [int, str]:
        raise TypeError("'mrast_band' parameter, if given, must be of type int or str.")

    if type(method) is not str:
        raise TypeError("'method' parameter must be of type str.")

    if mindist is not None and type(mindist) not in [int, float]:
        raise TypeError("'mindist' parameter must be of type int or float.")

    if existing is not None and type(existing) is not SpatialVector:
        raise TypeError("'existing' parameter must be of type sgstrat.SpatialVector.")

    if existing_strata is not None and type(existing_strata) is not str:
        raise TypeError("'existing_strata' parameter must be of type str.")

    if type(include) is not bool:
        raise TypeError("'include' parameter must be of type bool.")

    if type(force) is not bool:
        raise TypeError("'force' parameter must be of type bool.")

    if access is not None and type(access) not in [SpatialVector, SpatialRaster]:
        raise TypeError("'access' parameter must be of type sgstrat.SpatialVector or sgstrat.SpatialRaster.")

    if layer_name is not None and type(layer_name) is not str:
        raise TypeError("'layer_name' parameter must be of type str.")

    if buff_inner is not None and type(buff_inner) not in [int, float]:
        raise TypeError("'buff_inner' parameter must be of type int or float.")

    if buff_outer is not None and type(buff_outer) not in [int, float]:
        raise TypeError("'buff_outer' parameter must be of type int or float.")

    if type(stratum_mindist) is not bool:
        raise TypeError("'stratum_mindist' parameter must be of type bool.")

    if seed is not None and type(seed) is not int:
        raise TypeError("'seed' parameter must be of type int.")

    if type(filename) is not str:
        raise TypeError("'filename' parameter must be of type str.")

    if type(details) is not bool:
        raise TypeError("'details' parameter must be of type bool.")

    band = strat_rast.get_band_index(band)
    values = strat_rast.band(band)

    if num_samples < 1:
        raise ConfigurationError("num_samples must be greater than 0")

    if method not in METHODS:
        raise ConfigurationError("method must be either 'random' or 'Queinnec'.")

    check_window(wrow, wcol)

    if mindist is None:
        mindist = 0

    if mindist < 0:
        raise ConfigurationError("mindist must be greater than or equal to 0")

    metric = None
    if allocation == "optim" and mrast is not None:
        strat_rast.check_geometry(mrast, "mrast")
        metric = mrast.band(mrast_band)

    policy = allocation_policy(allocation, weights, metric)

    eligible = eligible_cells(strat_rast, values, access, layer_name, buff_inner, buff_outer)

    if existing is not None:
        (ex_x, ex_y, ex_strata) = strata_of_existing(strat_rast, existing, band, None, existing_strata)
        existing_counts = count_strata(ex_strata)
    else:
        (ex_x, ex_y, ex_strata) = (np.empty(0), np.empty(0), np.empty(0))
        existing_counts = None

    summary = StratumSummary.from_arrays(
        values,
        eligible,
        metric=policy.metric if isinstance(policy, Optimal) else None,
        categories=strat_rast.categories.get(band),
    )
    plan = allocate(policy, num_samples, summary, existing_counts, include, force)

    #allocation is validated, select the samples
    selector = Selector(strat_rast, mindist, stratum_mindist)
    seeded = selector.seed(ex_x, ex_y, ex_strata)
    rng = np.random.default_rng(seed)

    warnings = list(plan.warnings)
    sampled = np.zeros(len(plan.strata), dtype=np.int64)
    rows = []

    for (i, stratum) in enumerate(plan.strata):
        stratum = int(stratum)
        target = int(plan.allocated[i])

        if target == 0:
            accepted = []
        elif method == "Queinnec":
            candidates = rank_candidates(values, eligible, stratum, wrow, wcol)
            accepted = selector.queinnec(candidates, target)
        else:
            cells = np.flatnonzero((eligible & (values == stratum)).ravel())
            accepted = selector.random(cells, target, rng, stratum)

        if len(accepted) < target:
            shortfall = AllocationShortfall(stratum, target, len(accepted), "candidates exhausted under the distance constraint")
            logger.warning(str(shortfall))
            warnings.append(shortfall)

        if include:
            rows.extend(s for s in seeded if s.strata == stratum)
        rows.extend(accepted)
        sampled[i] = len(accepted)

    if include:
        known = set(int(s) for s in plan.strata)
        rows.extend(s for s in seeded if s.strata is None or s.strata not in known)

    num_points = int(sampled.sum())
    if num_points < plan.needed.sum():
        print("unable to find the full {} samples within the given constraints. Sampled {} points.".format(int(plan.needed.sum()), num_points))

    samples = SpatialVector(samples_frame(rows, strat_rast.crs), layer_name="samples")

    if filename:
        samples.write(filename)

    if not details:
        return samples

    table = plan.to_frame()
    table["sampled"] = sampled
    table["shortfall"] = np.maximum(plan.needed - sampled, 0)
    return samples, SamplingReport(table=table, warnings=warnings)
