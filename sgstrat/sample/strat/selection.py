# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: greedy selection of sample cells under a minimum distance
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from sgstrat.sample.distance import DistanceIndex
from sgstrat.sample.strat.queinnec import Candidates
from sgstrat.utils import SpatialRaster

logger = logging.getLogger(__name__)

RULE1 = "rule1"
RULE2 = "rule2"
EXISTING = "existing"
NEW = "new"

@dataclass(frozen=True)
class AcceptedSample:
    x: float
    y: float
    strata: Optional[int]
    rule: str
    type: str

class Selector:
    """
    Accepts sample cells one at a time, keeping track of the cells already
    taken and of every accepted point for the minimum distance check.

    By default the minimum distance applies between all points. If
    stratum_mindist is set it only applies between points of the same
    stratum.

    A Selector holds the state of a single sampling run.
    """
    def __init__(self,
                 rast: SpatialRaster,
                 mindist: float = 0,
                 stratum_mindist: bool = False):
        if mindist < 0:
            raise ValueError("mindist must be greater than or equal to 0")

        self.rast = rast
        self.mindist = mindist
        self.stratum_mindist = stratum_mindist
        self.taken = np.zeros(rast.width * rast.height, dtype=bool)
        self.points = []
        self.strata_points = {}

    def _points(self, stratum: Optional[int]) -> Optional[list[tuple[float, float]]]:
        """
        The accepted points the minimum distance of 'stratum' is checked against.
        """
        if not self.stratum_mindist:
            return self.points

        if stratum is None:
            return None

        return self.strata_points.setdefault(stratum, [])

    def _index(self, points: list[tuple[float, float]], xs: np.ndarray, ys: np.ndarray) -> DistanceIndex:
        index = DistanceIndex(xs, ys, self.mindist)
        if points:
            arr = np.asarray(points)
            index.add(arr[:, 0], arr[:, 1])
        return index

    def _accept(self, i: int, cell: int, x: float, y: float, index: DistanceIndex, points: list) -> bool:
        if self.taken[cell] or not index.accepts(i):
            return False

        self.taken[cell] = True
        index.add(x, y)
        points.append((float(x), float(y)))
        return True

    def seed(self, x: np.ndarray, y: np.ndarray, strata: np.ndarray) -> list[AcceptedSample]:
        """
        Registers existing samples. Their cells are marked as taken and their
        coordinates occupy distance exclusion space, they are returned tagged
        as existing. strata is NaN where a samples stratum is unknown.
        """
        cells = self.rast.xy_cell(x, y)

        samples = []
        for (xi, yi, cell, s) in zip(x, y, cells, strata):
            stratum = None if np.isnan(s) else int(s)
            if cell >= 0:
                self.taken[cell] = True

            points = self._points(stratum)
            if points is not None:
                points.append((float(xi), float(yi)))

            samples.append(AcceptedSample(float(xi), float(yi), stratum, EXISTING, EXISTING))

        return samples

    def queinnec(self, candidates: Candidates, target: int) -> list[AcceptedSample]:
        """
        Selects up to target cells from ranked candidates. Clustered
        candidates are accepted first (rule1), then isolated ones (rule2).
        """
        accepted = []
        if target <= 0 or len(candidates) == 0:
            return accepted

        points = self._points(candidates.stratum)
        (xs, ys) = self.rast.cell_xy(candidates.cells)
        index = self._index(points, xs, ys)
        clustered = candidates.clustered

        for (rule, selection) in ((RULE1, clustered), (RULE2, ~clustered)):
            for i in np.flatnonzero(selection):
                if len(accepted) == target:
                    return accepted

                if self._accept(i, candidates.cells[i], xs[i], ys[i], index, points):
                    accepted.append(AcceptedSample(float(xs[i]), float(ys[i]), candidates.stratum, rule, NEW))

        logger.debug("strata %d: %d rule1 and %d rule2 samples",
            candidates.stratum,
            sum(1 for sample in accepted if sample.rule == RULE1),
            sum(1 for sample in accepted if sample.rule == RULE2))
        return accepted

    def random(self,
               cells: np.ndarray,
               target: int,
               rng: np.random.Generator,
               stratum: Optional[int] = None) -> list[AcceptedSample]:
        """
        Selects up to target cells uniformly at random from 'cells'.
        """
        accepted = []
        if target <= 0 or len(cells) == 0:
            return accepted

        points = self._points(stratum)
        if points is None:
            points = self.points

        order = rng.permutation(cells)
        (xs, ys) = self.rast.cell_xy(order)
        index = self._index(points, xs, ys)

        for i in range(len(order)):
            if len(accepted) == target:
                break

            if self._accept(i, order[i], xs[i], ys[i], index, points):
                accepted.append(AcceptedSample(float(xs[i]), float(ys[i]), stratum, RULE1, NEW))

        return accepted
