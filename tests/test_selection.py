import pytest
import numpy as np

from sgstrat.sample.distance import DistanceIndex
from sgstrat.sample.strat.queinnec import rank_candidates
from sgstrat.sample.strat.selection import (
    EXISTING,
    NEW,
    RULE1,
    RULE2,
    Selector,
)

from files import (
    strat_raster_3,
    strat_raster_isolated,
)

class TestDistanceIndex:
    def test_accepts(self):
        x = np.array([0, 5, -9.9, 10, 7.1, 100])
        y = np.array([0, 5, 0, 0, 7.1, 100])
        index = DistanceIndex(x, y, 10)
        assert all(index.accepts(i) for i in range(6))

        index.add(0, 0)
        assert len(index) == 1
        assert [index.accepts(i) for i in range(6)] == [False, False, False, True, True, True]

    def test_zero_mindist_accepts_everything(self):
        index = DistanceIndex(np.array([0.0]), np.array([0.0]), 0)
        index.add(0, 0)
        assert index.accepts(0)

    def test_points_off_the_candidates(self):
        index = DistanceIndex(np.array([0.0, 20.0]), np.array([0.0, 0.0]), 12)
        index.add([10.0], [0.0])
        assert not index.accepts(0)
        assert not index.accepts(1)

    def test_matches_naive_check(self):
        rng = np.random.default_rng(5)
        points = rng.uniform(0, 100, size=(300, 2))

        index = DistanceIndex(points[:, 0], points[:, 1], 7.5)
        accepted = []
        for (i, (x, y)) in enumerate(points):
            naive = all(np.hypot(x - ax, y - ay) >= 7.5 for (ax, ay) in accepted)
            assert index.accepts(i) == naive
            if naive:
                index.add(x, y)
                accepted.append((x, y))

    def test_negative_mindist(self):
        with pytest.raises(ValueError):
            DistanceIndex(np.array([0.0]), np.array([0.0]), -1)

class TestSelector:
    def test_rule2_after_rule1(self):
        rast = strat_raster_isolated()
        candidates = rank_candidates(rast.band(), np.ones((10, 10), dtype=bool), 1)
        accepted = Selector(rast).queinnec(candidates, 5)

        assert [s.rule for s in accepted] == [RULE1] * 4 + [RULE2]
        assert all(s.type == NEW for s in accepted)
        assert all(s.strata == 1 for s in accepted)
        assert (accepted[-1].x, accepted[-1].y) == (75, 25)

    def test_rule2_not_used_when_rule1_suffices(self):
        rast = strat_raster_isolated()
        candidates = rank_candidates(rast.band(), np.ones((10, 10), dtype=bool), 1)
        accepted = Selector(rast).queinnec(candidates, 3)
        assert [s.rule for s in accepted] == [RULE1] * 3

    def test_mindist(self):
        rast = strat_raster_isolated()
        candidates = rank_candidates(rast.band(), np.ones((10, 10), dtype=bool), 1)

        #adjacent block cells are 10 apart, diagonal ones 14.1
        accepted = Selector(rast, mindist=12).queinnec(candidates, 5)
        assert [(s.x, s.y) for s in accepted] == [(5, 95), (15, 85), (75, 25)]
        assert [s.rule for s in accepted] == [RULE1, RULE1, RULE2]

    def test_seed_blocks_cells_and_distance(self):
        rast = strat_raster_isolated()
        selector = Selector(rast, mindist=12)
        seeded = selector.seed(np.array([5.0, 500.0]), np.array([95.0, 500.0]), np.array([1.0, np.nan]))

        assert [s.type for s in seeded] == [EXISTING, EXISTING]
        assert [s.strata for s in seeded] == [1, None]

        candidates = rank_candidates(rast.band(), np.ones((10, 10), dtype=bool), 1)
        accepted = selector.queinnec(candidates, 5)
        assert [(s.x, s.y) for s in accepted] == [(15, 85), (75, 25)]

    def test_stratum_mindist(self):
        rast = strat_raster_3()
        selector = Selector(rast, mindist=50, stratum_mindist=True)
        selector.seed(np.array([5.0]), np.array([155.0]), np.array([0.0]))

        #row 5 is strata 1, directly below the existing strata 0 sample
        first = selector.random(np.array([5 * 20]), 1, np.random.default_rng(0), 1)
        assert len(first) == 1

        #a second strata 0 sample 14.1 away is rejected
        second = selector.random(np.array([3 * 20 + 1]), 1, np.random.default_rng(0), 0)
        assert len(second) == 0

    def test_random_is_reproducible(self):
        rast = strat_raster_3()
        cells = np.arange(400)

        first = Selector(rast, mindist=15).random(cells, 20, np.random.default_rng(42))
        second = Selector(rast, mindist=15).random(cells, 20, np.random.default_rng(42))
        assert [(s.x, s.y) for s in first] == [(s.x, s.y) for s in second]
        assert all(s.rule == RULE1 for s in first)
        assert len(first) == 20

    def test_cells_are_not_reused(self):
        rast = strat_raster_3()
        selector = Selector(rast)
        first = selector.random(np.arange(10), 10, np.random.default_rng(1))
        second = selector.random(np.arange(10), 10, np.random.default_rng(2))
        assert len(first) == 10
        assert len(second) == 0
