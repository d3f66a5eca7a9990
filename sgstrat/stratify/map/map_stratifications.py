# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: map mulitiple stratification rasters
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import logging

import numpy as np
import pandas as pd

from sgstrat.errors import ConfigurationError
from sgstrat.utils import SpatialRaster

logger = logging.getLogger(__name__)

MAX_STRATA_VAL = 2147483647 #maximum value stored within a 32-bit signed integer to ensure no overflow

def _column_names(count: int) -> list[str]:
    return ["strata"] + ["strata{}".format(i) for i in range(2, count + 1)]

def map(*args: SpatialRaster | tuple[SpatialRaster, int | str],
        stack: bool = False,
        details: bool = False,
        filename: str = ''):
    """
    this function conducts mapping on existing stratifications.

    The pre-existing stratifications are passed either as a single band
    SpatialRaster, or as a tuple of a SpatialRaster and the band within
    it to use. There must be at least two of them, for example:
     - map(srast1, srast2)
     - map((rast, 'strat_zq90'), (rast, 'strat_pz2'), srast3)

    The mapped value of a pixel concatenates the digits of the stratum
    of each input. Every input after the first is zero padded to the
    number of digits of its largest stratum, so strata 1 and 14 map to
    114 when the second input has strata up to 14, and strata 1 and 4
    map to 104 in the same case. A nodata pixel in any input is nodata
    in the mapped output.

    If any input has category labels for its band, the lookup table gains
    a 'stratamapped_cat' column joining the labels of each input with '_'.
    The raw stratum value is used for inputs without a label.

    Parameters
    --------------------
    *args : SpatialRaster | tuple[SpatialRaster, int | str]
        the stratifications to map
    stack : bool
        whether the output also contains the input bands ('strata', 'strata2', ...)
        followed by a 'stratamapped' band
    details : bool
        whether to also return the lookup table of the mapped strata
    filename : str
        filename to write to or '' if not file should be written

    Raises
    --------------------
    TypeError:
        if an argument is not a SpatialRaster or a (SpatialRaster, band) tuple
    ConfigurationError:
        if fewer than two inputs are given, the rasters do not share the same
        geometry, or a band is missing or invalid
    ValueError:
        if the mapped strata would overflow a 32-bit signed integer

    Returns
    --------------------
    a SpatialRaster object containing the mapped stratification, and a pandas
    DataFrame lookup table if details is True.
    """
    if len(args) < 2:
        raise ConfigurationError("at least two stratifications are required for mapping.")

    inputs = []
    for arg in args:
        if type(arg) is SpatialRaster:
            (rast, band) = (arg, None)
        elif type(arg) is tuple and len(arg) == 2 and type(arg[0]) is SpatialRaster:
            (rast, band) = arg
        else:
            raise TypeError("arguments must be of type sgstrat.SpatialRaster or tuple[sgstrat.SpatialRaster, int | str].")

        band = rast.get_band_index(band)
        if inputs:
            inputs[0][0].check_geometry(rast, "map input {}".format(len(inputs) + 1))

        #validates the band holds non-negative integer strata
        strata = rast.strata(band)
        inputs.append((rast, band, strata))

    first = inputs[0][0]
    valid = np.ones((first.height, first.width), dtype=bool)
    for (rast, band, _) in inputs:
        valid &= ~np.isnan(rast.band(band))

    #error check max value for potential overflow error
    max_mapped_strata = 0
    mapped = np.zeros(int(valid.sum()), dtype=np.int64)
    for (i, (rast, band, strata)) in enumerate(inputs):
        values = rast.band(band)[valid].astype(np.int64)
        largest = int(strata.max()) if len(strata) > 0 else 0

        if i == 0:
            (max_mapped_strata, mapped) = (largest, values)
            continue

        scale = 10 ** len(str(largest))
        max_mapped_strata = max_mapped_strata * scale + largest
        if max_mapped_strata > MAX_STRATA_VAL:
            raise ValueError("the mapped strata will cause an overflow error because the max strata number is too large.")

        mapped = mapped * scale + values

    out = np.full((first.height, first.width), np.nan)
    out[valid] = mapped

    columns = _column_names(len(inputs))
    combos = np.column_stack([rast.band(band)[valid].astype(np.int64) for (rast, band, _) in inputs] + [mapped])
    lookup = pd.DataFrame(np.unique(combos, axis=0), columns=columns + ["stratamapped"])

    labels = [rast.categories.get(band) for (rast, band, _) in inputs]
    categories = {}
    if any(labels):
        def label(row) -> str:
            return "_".join(
                labels[i].get(int(value), str(int(value))) if labels[i] else str(int(value))
                for (i, value) in enumerate(row)
            )
        lookup["stratamapped_cat"] = [label(row) for row in lookup[columns].itertuples(index=False)]
        categories = dict(zip(lookup["stratamapped"].astype(int), lookup["stratamapped_cat"]))

    logger.debug("mapped %d stratifications into %d strata", len(inputs), len(lookup))

    if stack:
        arr = np.stack([rast.band(band) for (rast, band, _) in inputs] + [out])
        bands = columns + ["stratamapped"]
        band_categories = {name: labels[i] for (i, name) in enumerate(columns) if labels[i]}
        if categories:
            band_categories["stratamapped"] = categories
    else:
        arr = out
        bands = ["strata"]
        band_categories = {"strata": categories} if categories else None

    srast = SpatialRaster(
        arr,
        xmin=first.xmin,
        ymax=first.ymax,
        pixel_width=first.pixel_width,
        pixel_height=first.pixel_height,
        bands=bands,
        crs=first.crs,
        categories=band_categories,
    )

    if filename:
        srast.write(filename)

    if details:
        return srast, lookup

    return srast
