# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: stratum extraction for an existing sample network
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

from typing import Optional

import numpy as np
import pandas as pd

from sgstrat.errors import ConfigurationError
from sgstrat.utils import (
    SpatialRaster,
    SpatialVector,
)

def existing_strata(
    strat_rast: SpatialRaster,
    samples: SpatialVector,
    band: Optional[int | str] = None,
    layer_name: Optional[str] = None,
    attribute: Optional[str] = None) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Returns the x and y coordinates and the stratum of every existing sample.

    If attribute is given, the stratum is read from that attribute of the
    samples layer. Otherwise it is the value of the strat_rast cell containing
    the sample. The stratum is NaN for samples outside of the raster, on
    nodata cells, or with a missing attribute value.

    Raises
    --------------------
    ConfigurationError:
        if the layer contains geometries other than Points, the crs does not match
        the raster, the attribute does not exist, or it holds a negative or
        fractional strata
    """
    layer = samples.layer(layer_name)

    if len(layer) > 0 and set(layer.geom_type.dropna()) != {"Point"}:
        raise ConfigurationError("existing samples must be Point geometries.")

    if layer.crs is not None and strat_rast.crs is not None and not layer.crs == strat_rast.crs.to_wkt():
        raise ConfigurationError("coordinate reference system of the existing samples does not match the raster.")

    x = layer.geometry.x.to_numpy(dtype=np.float64)
    y = layer.geometry.y.to_numpy(dtype=np.float64)

    if attribute is not None:
        if attribute not in layer.columns:
            raise ConfigurationError("existing samples must have a '{}' attribute.".format(attribute))
        strata = pd.to_numeric(layer[attribute], errors="coerce").to_numpy(dtype=np.float64)

        known = strata[~np.isnan(strata)]
        if np.any(known < 0) or np.any(known != np.floor(known)):
            raise ConfigurationError("the '{}' attribute of the existing samples must hold non-negative integer strata.".format(attribute))
    else:
        values = strat_rast.band(band).ravel()
        cells = strat_rast.xy_cell(x, y)
        strata = np.where(cells >= 0, values[np.maximum(cells, 0)], np.nan)

    return x, y, strata

def existing(
    strat_rast: SpatialRaster,
    samples: SpatialVector,
    band: Optional[int | str] = None,
    layer_name: Optional[str] = None,
    attribute: str = "strata") -> SpatialVector:
    """
    This function extracts the stratum of every sample in an existing
    sample network from the cell of the stratification raster containing it.

    The samples are not modified, a new SpatialVector is returned whose
    layer is a copy of the samples layer with the stratum in an additional
    'attribute' column. The stratum is NaN for samples which fall outside
    of the raster or on nodata pixels.

    Parameters
    --------------------
    strat_rast : SpatialRaster
        the stratification raster
    samples : SpatialVector
        a vector of Point geometries
    band : int | str
        the band within strat_rast to use, required if it has more than 1 band
    layer_name : str
        the layer within samples, required if it has more than 1 layer
    attribute : str
        the name of the column to write the strata to

    Returns
    --------------------
    a SpatialVector with a single layer of the same name as the samples layer
    """
    if type(strat_rast) is not SpatialRaster:
        raise TypeError("'strat_rast' parameter must be of type sgstrat.SpatialRaster.")

    if type(samples) is not SpatialVector:
        raise TypeError("'samples' parameter must be of type sgstrat.SpatialVector.")

    name = samples.get_layer_name(layer_name)
    (_, _, strata) = existing_strata(strat_rast, samples, band, name)

    gdf = samples.to_geopandas(name)
    gdf[attribute] = strata
    return SpatialVector(gdf, layer_name=name)
