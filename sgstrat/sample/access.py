# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: access buffering of sampleable cells
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import logging
from typing import Optional

import numpy as np
import shapely

from sgstrat.errors import ConfigurationError
from sgstrat.utils import (
    SpatialRaster,
    SpatialVector,
)

logger = logging.getLogger(__name__)

LINE_TYPES = {"LineString", "MultiLineString"}

def check_buffers(
    buff_inner: Optional[int | float],
    buff_outer: Optional[int | float]):
    """
    Raises a ConfigurationError if the buffer distances are negative or
    buff_inner is not smaller than buff_outer.
    """
    if buff_inner is not None and buff_inner < 0:
        raise ConfigurationError("buff_inner must be greater than or equal to 0.")

    if buff_outer is not None and buff_outer < 0:
        raise ConfigurationError("buff_outer must be greater than or equal to 0.")

    if buff_inner is not None and buff_outer is not None and buff_inner >= buff_outer:
        raise ConfigurationError("buff_outer must be greater than buff_inner")

def access_distance(
    rast: SpatialRaster,
    access: SpatialVector | SpatialRaster,
    layer_name: Optional[str] = None,
    valid: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Calculates the distance from each pixel center to the access network.

    If access is a SpatialVector, the distance is measured to the union of
    the LineString/MultiLineString geometries in the chosen layer. Only the
    cells in 'valid' are measured, the rest are NaN. If access is a
    SpatialRaster, it is taken to already be a distance-to-access grid.

    Parameters
    --------------------
    rast : SpatialRaster
        the raster defining the grid
    access : SpatialVector | SpatialRaster
        the access network, or a single band distance raster
    layer_name : str
        the layer within access to use, required if access has multiple layers
    valid : np.ndarray
        optional boolean (height, width) array of cells to measure

    Raises
    --------------------
    ConfigurationError:
        if the access layer contains geometries other than lines, its crs does
        not match the raster, or an access raster does not match the grid
    """
    if isinstance(access, SpatialRaster):
        rast.check_geometry(access, "access")
        if access.band_count != 1:
            raise ConfigurationError("an access distance raster must have a single band.")
        return np.array(access.band(0))

    layer = access.layer(layer_name)

    geom_types = set(layer.geom_type.dropna())
    if not geom_types or not geom_types.issubset(LINE_TYPES):
        raise ConfigurationError("the access layer must contain only LineString or MultiLineString geometries.")

    if layer.crs is not None and rast.crs is not None and not layer.crs == rast.crs.to_wkt():
        raise ConfigurationError("coordinate reference system of the access vector does not match the raster.")

    if valid is None:
        cells = np.arange(rast.width * rast.height)
    else:
        cells = np.flatnonzero(valid.ravel())

    distance = np.full(rast.width * rast.height, np.nan)
    if len(cells) > 0:
        (x, y) = rast.cell_xy(cells)
        network = layer.geometry.union_all()
        distance[cells] = shapely.distance(shapely.points(x, y), network)

    logger.debug("measured access distance for %d cells", len(cells))
    return distance.reshape(rast.height, rast.width)

def access_mask(
    distance: np.ndarray,
    buff_inner: Optional[int | float] = None,
    buff_outer: Optional[int | float] = None) -> np.ndarray:
    """
    A cell is accessible if its distance is greater than buff_inner and
    less than or equal to buff_outer. A None buffer is not checked, cells
    with a NaN distance are never accessible.
    """
    check_buffers(buff_inner, buff_outer)

    mask = ~np.isnan(distance)
    if buff_inner is not None:
        mask &= distance > buff_inner
    if buff_outer is not None:
        mask &= distance <= buff_outer

    return mask

def eligible_cells(
    rast: SpatialRaster,
    values: np.ndarray,
    access: Optional[SpatialVector | SpatialRaster] = None,
    layer_name: Optional[str] = None,
    buff_inner: Optional[int | float] = None,
    buff_outer: Optional[int | float] = None) -> np.ndarray:
    """
    Returns the boolean (height, width) array of cells which may be sampled:
    cells with data in 'values' which are within the access buffers.

    Raises
    --------------------
    ConfigurationError:
        if buffers are given without an access network, or they are invalid
    """
    check_buffers(buff_inner, buff_outer)

    valid = ~np.isnan(values)
    if access is None:
        if buff_inner is not None or buff_outer is not None:
            raise ConfigurationError("buff_inner and buff_outer may only be given along with an access network.")
        return valid

    distance = access_distance(rast, access, layer_name, valid)
    eligible = valid & access_mask(distance, buff_inner, buff_outer)

    logger.debug("%d of %d data cells are accessible", int(eligible.sum()), int(valid.sum()))
    return eligible
