# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: simple random sampling (srs)
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

from typing import Optional

import geopandas as gpd
import numpy as np

from sgstrat.errors import ConfigurationError
from sgstrat.sample.access import eligible_cells
from sgstrat.sample.strat.selection import Selector
from sgstrat.utils import (
    SpatialRaster,
    SpatialVector,
)

def srs(
    rast: SpatialRaster,
    num_samples: int,
    mindist: float = 0,
    band: Optional[int | str] = None,
    access: Optional[SpatialVector | SpatialRaster] = None,
    layer_name: Optional[str] = None,
    buff_inner: Optional[int | float] = None,
    buff_outer: Optional[int | float] = None,
    seed: Optional[int] = None,
    filename: str = ''):
    """
    This function conducts simple random sampling on the raster given.
    Sample points are randomly selected from data pixels (not nodata).
    All sample points are at least mindist distance away from eachother.
    If unable to get the full number of sample points, a message is printed.

    An access vector of LineString or MultiLineString type can be provided.
    buff_outer specifies the buffer distance around the geometry which
    is allowed to be included in the sampling, buff_inner specifies the
    geometry which is not allowed to be included in the sampling. buff_outer
    must be larger than buff_inner. For a multi-layer vector, layer_name
    must be specified.

    Parameters
    --------------------
    rast : SpatialRaster
        raster data structure containing the raster to sample
    num_samples : int
        the target number of samples
    mindist : float
        the minimum distance each sample point must be from each other
    band (optional) : int | str
        the band whose nodata pixels are excluded, required if rast has more than 1 band
    access (optional) : SpatialVector | SpatialRaster
        a vector specifying access network, or a distance-to-access raster
    layer_name (optional) : str
        the layer within access that is to be used for sampling
    buff_inner (optional) : int | float
        buffer boundary specifying distance from access which CANNOT be sampled
    buff_outer (optional) : int | float
        buffer boundary specifying distance from access which CAN be sampled
    seed (optional) : int
        seed of the random number generator
    filename : str
        the filename to write to, or '' if file should not be written

    Raises
    --------------------
    TypeError:
        if rast is not a SpatialRaster or num_samples is not an int
    ConfigurationError:
        if num_samples is less than 1, mindist is negative, or the band,
        access network or buffers are invalid

    Returns
    --------------------
    a SpatialVector with a 'samples' layer of Point geometries
    """
    if type(rast) is not SpatialRaster:
        raise TypeError("'rast' parameter must be of type sgstrat.SpatialRaster.")

    if type(num_samples) is not int:
        raise TypeError("'num_samples' parameter must be of type int.")

    if num_samples < 1:
        raise ConfigurationError("num_samples must be greater than 0")

    if mindist is None:
        mindist = 0

    if mindist < 0:
        raise ConfigurationError("mindist must be greater than or equal to 0")

    eligible = eligible_cells(rast, rast.band(band), access, layer_name, buff_inner, buff_outer)

    selector = Selector(rast, mindist)
    accepted = selector.random(np.flatnonzero(eligible.ravel()), num_samples, np.random.default_rng(seed))

    if len(accepted) < num_samples:
        print("unable to find the full {} samples within the given constraints. Sampled {} points.".format(num_samples, len(accepted)))

    gdf = gpd.GeoDataFrame(
        geometry=gpd.points_from_xy([s.x for s in accepted], [s.y for s in accepted]),
        crs=rast.crs.to_wkt() if rast.crs is not None else None,
    )
    samples = SpatialVector(gdf, layer_name="samples")

    if filename:
        samples.write(filename)

    return samples
