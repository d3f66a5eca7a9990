# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: focal window ranking of candidate cells (Queinnec method)
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

from dataclasses import dataclass

import numpy as np

from sgstrat.errors import ConfigurationError

def check_window(wrow: int, wcol: int):
    if wrow < 1 or wrow % 2 == 0:
        raise ConfigurationError("wrow must be an odd integer greater than or equal to 1.")

    if wcol < 1 or wcol % 2 == 0:
        raise ConfigurationError("wcol must be an odd integer greater than or equal to 1.")

def focal_counts(mask: np.ndarray, wrow: int = 3, wcol: int = 3) -> np.ndarray:
    """
    Counts the True cells of 'mask' within the wrow x wcol window around
    every cell, clipped at the edges. The window follows the convention of
    SpatialRaster.neighbors().

    The counts are read from an integral image, so the cost does not depend
    on the window size.
    """
    (height, width) = mask.shape

    integral = np.zeros((height + 1, width + 1), dtype=np.int64)
    integral[1:, 1:] = np.cumsum(np.cumsum(mask, axis=0, dtype=np.int64), axis=1)

    rows = np.arange(height)
    cols = np.arange(width)
    r0 = np.clip(rows - (wrow - 1) // 2, 0, height)[:, np.newaxis]
    r1 = np.clip(rows + wrow // 2 + 1, 0, height)[:, np.newaxis]
    c0 = np.clip(cols - (wcol - 1) // 2, 0, width)[np.newaxis, :]
    c1 = np.clip(cols + wcol // 2 + 1, 0, width)[np.newaxis, :]

    return integral[r1, c1] - integral[r0, c1] - integral[r1, c0] + integral[r0, c0]

@dataclass(frozen=True, eq=False)
class Candidates:
    """
    Ranked candidate cells of a single stratum.

    cells are linear cell indices, counts the number of same-stratum eligible
    cells in each cells window (itself included). Candidates are ordered by
    descending count, then ascending row and column.
    """
    stratum: int
    cells: np.ndarray
    counts: np.ndarray

    def __len__(self):
        return len(self.cells)

    @property
    def clustered(self) -> np.ndarray:
        """
        Boolean array, True for Rule 1 candidates (count greater than 1).
        """
        return self.counts > 1

def rank_candidates(
    values: np.ndarray,
    eligible: np.ndarray,
    stratum: int,
    wrow: int = 3,
    wcol: int = 3) -> Candidates:
    """
    Ranks the eligible cells of a stratum by the number of eligible
    same-stratum cells in their focal window.

    Parameters
    --------------------
    values : np.ndarray
        the stratification band
    eligible : np.ndarray
        boolean array of cells which may be sampled
    stratum : int
        the stratum to rank
    wrow : int
        the number of rows in the focal window
    wcol : int
        the number of columns in the focal window
    """
    mask = eligible & (values == stratum)
    counts = focal_counts(mask, wrow, wcol).ravel()

    cells = np.flatnonzero(mask.ravel())
    counts = counts[cells]

    #linear index order is row then column order
    order = np.lexsort((cells, -counts))
    return Candidates(stratum=int(stratum), cells=cells[order], counts=counts[order])
