# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: stratification by user defined breaks
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import numpy as np

from sgstrat.errors import ConfigurationError
from sgstrat.stratify.map.map_stratifications import (
    MAX_STRATA_VAL,
    map as map_stratifications,
)
from sgstrat.utils import SpatialRaster

def breaks(
    rast: SpatialRaster,
    breaks: list[float | list[float]] | dict[str, list[float]],
    map: bool = False,
    filename: str = ''
    ):
    """
    This function conducts stratification on the raster given
    according to the user defined breaks.

    The breaks may be defined as a single list of ints or floats
    in the case of a raster with a single band. Or, they may be defined
    as a list of ints or floats where the index indicates the raster band.
    Or, they may be defined as a dict where the (str) key represents
    the raster band and the value is a list of ints or floats.

    Strata are numbered from 0. A pixel below the first break is in
    strata 0, a pixel at or above break i (sorted ascending) and below
    break i + 1 is in strata i + 1. nodata pixels remain nodata. The output
    band of a stratified band 'zq90' is named 'strat_zq90'.

    if the map parameter is given, an extra output band 'strat_map' will be
    used which combines all stratifications from the previous bands used, see
    sgstrat.map() for how the values are combined.

    Parameters
    --------------------
    rast : SpatialRaster
        raster data structure containing the raster to stratify
    breaks :  list[float | list[float]] | dict[str, list[float]],
        user defined breaks to stratify
    map : bool
        whether to map the stratification of multiple raster bands onto a single band
    filename : str
        filename to write to or '' if no file should be written

    Returns
    --------------------
    a SpatialRaster with one stratification band per band given breaks
    """
    if type(rast) is not SpatialRaster:
        raise TypeError("'rast' parameter must be of type sgstrat.SpatialRaster.")

    if type(breaks) not in [list, dict]:
        raise TypeError("'breaks' parameter must be of type list or dict.")

    if type(map) is not bool:
        raise TypeError("'map' parameter must be of type bool.")

    breaks_dict = {}

    if len(breaks) < 1:
        raise ConfigurationError("breaks must contain at least one element.")

    if type(breaks) is list and type(breaks[0]) is list:
        #error check number of rasters bands
        if len(breaks) != rast.band_count:
            raise ConfigurationError("number of lists of breaks must be equal to the number of raster bands.")

        for i in range(len(breaks)):
            breaks_dict[i] = breaks[i]

    elif type(breaks) is list: #type(breaks[0]) is int or float
        #error check number of raster bands
        if rast.band_count != 1:
            raise ConfigurationError("if breaks is a single list, raster must have a single band (has {}).".format(rast.band_count))

        breaks_dict[0] = breaks

    else: #breaks is a dict
        for key, val in breaks.items():
            if key in rast.bands:
                breaks_dict[rast.band_name_dict[key]] = val
            else:
                raise ConfigurationError("breaks dict key must be a valid band name (see SpatialRaster.bands for list of names)")

    for _, val in breaks_dict.items():
        if len(val) + 1 > MAX_STRATA_VAL:
            raise ValueError("one of the breaks given will cause an integer overflow error because the max strata number is too large.")

    bands = []
    names = []
    for (index, val) in breaks_dict.items():
        values = rast.band(index)
        edges = np.sort(np.asarray(val, dtype=np.float64))
        strata = np.where(np.isnan(values), np.nan, np.digitize(values, edges))

        bands.append(strata)
        names.append("strat_" + rast.bands[index])

    srast = SpatialRaster(
        np.stack(bands),
        xmin=rast.xmin,
        ymax=rast.ymax,
        pixel_width=rast.pixel_width,
        pixel_height=rast.pixel_height,
        bands=names,
        crs=rast.crs,
    )

    if map:
        if srast.band_count == 1:
            mapped = srast.band(0)
        else:
            mapped = map_stratifications(*[(srast, i) for i in range(srast.band_count)]).band(0)

        srast = SpatialRaster(
            np.concatenate([srast.arr, mapped[np.newaxis, :, :]]),
            xmin=rast.xmin,
            ymax=rast.ymax,
            pixel_width=rast.pixel_width,
            pixel_height=rast.pixel_height,
            bands=names + ["strat_map"],
            crs=rast.crs,
        )

    if filename:
        srast.write(filename)

    return srast
