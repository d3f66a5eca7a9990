# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: minimum distance enforcement between sample points
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

import numpy as np
from scipy.spatial import cKDTree

class DistanceIndex:
    """
    Minimum distance exclusion over a fixed set of candidate points.

    The candidates are held in a scipy cKDTree. Every point added blocks
    the candidates strictly closer than mindist to it, so checking a
    candidate is a lookup. A mindist of 0 blocks nothing.

    Parameters
    --------------------
    x : np.ndarray
        x coordinates of the candidates
    y : np.ndarray
        y coordinates of the candidates
    mindist : float
        the minimum distance between accepted points
    """
    def __init__(self, x: np.ndarray, y: np.ndarray, mindist: float = 0):
        if mindist < 0:
            raise ValueError("mindist must be greater than or equal to 0")

        self.mindist = float(mindist)
        self.blocked = np.zeros(len(x), dtype=bool)
        self.count = 0

        self.tree = None
        if self.mindist > 0 and len(x) > 0:
            self.tree = cKDTree(np.column_stack((x, y)).astype(np.float64))

    def __len__(self):
        return self.count

    def accepts(self, i: int) -> bool:
        """
        True if candidate i is at least mindist away from every added point.
        """
        return not self.blocked[i]

    def add(self, x, y):
        """
        Adds one or more points, blocking the candidates within mindist of them.
        """
        points = np.column_stack((np.atleast_1d(x), np.atleast_1d(y))).astype(np.float64)
        self.count += len(points)

        if self.tree is None or len(points) == 0:
            return

        #the ball is slightly wider than mindist, the exact check is below
        neighbors = self.tree.query_ball_point(points, r=self.mindist * (1 + 1e-9))
        for (point, near) in zip(points, neighbors):
            if not near:
                continue

            near = np.asarray(near)
            dist = np.hypot(self.tree.data[near, 0] - point[0], self.tree.data[near, 1] - point[1])
            self.blocked[near[dist < self.mindist]] = True
