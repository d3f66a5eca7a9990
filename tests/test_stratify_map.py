import pytest
import numpy as np

import sgstrat
from sgstrat.errors import ConfigurationError

from files import (
    CRS,
    strat_raster_3,
    strat_raster_4,
    strat_raster_large,
)

def grid(arr, **kwargs):
    return sgstrat.SpatialRaster(np.asarray(arr, dtype=np.float64), xmin=0, ymax=20, pixel_width=10, pixel_height=10, crs=CRS, **kwargs)

class TestMap:
    def test_map_two_rasters(self):
        srast = sgstrat.map(strat_raster_3(), strat_raster_4())
        assert srast.bands == ['strata']

        #rows 0-4 are (0, 0), rows 5-9 (1, 1), rows 10-14 (2, 2), rows 15-19 (2, 3)
        assert srast['strata', 0, 0] == 0
        assert srast['strata', 7, 0] == 11
        assert srast['strata', 12, 0] == 22
        assert srast['strata', 17, 0] == 23
        assert list(srast.strata()) == [0, 11, 22, 23]

    def test_zero_padding(self):
        first = grid([[1, 2]])
        second = grid([[4, 14]])
        srast = sgstrat.map(first, second)
        assert srast['strata', 0].tolist() == [104, 214]

    def test_mapping_is_unique(self):
        first = grid([[1, 11, 1]])
        second = grid([[11, 1, 1]])
        srast = sgstrat.map(first, second)
        assert len(set(srast['strata', 0].tolist())) == 3

    def test_three_inputs_and_bands(self):
        rast = grid(np.stack([[[0, 1]], [[2, 3]]]), bands=['a', 'b'])
        srast = sgstrat.map((rast, 'a'), (rast, 1), grid([[5, 6]]))
        assert srast['strata', 0].tolist() == [25, 136]

    def test_nodata(self):
        srast = sgstrat.map(strat_raster_large(), strat_raster_large())
        assert np.isnan(srast[0, 0, 0])
        assert srast[0, 1, 1] == 0
        assert srast[0, 38, 1] == 11

    def test_stack(self):
        srast = sgstrat.map(strat_raster_3(), strat_raster_4(), stack=True)
        assert srast.bands == ['strata', 'strata2', 'stratamapped']
        assert np.array_equal(srast['strata'], strat_raster_3().band(0))
        assert np.array_equal(srast['strata2'], strat_raster_4().band(0))
        assert srast['stratamapped', 17, 0] == 23

    def test_details(self):
        (srast, lookup) = sgstrat.map(strat_raster_3(), strat_raster_4(), details=True)
        assert lookup.columns.tolist() == ['strata', 'strata2', 'stratamapped']
        assert lookup.values.tolist() == [[0, 0, 0], [1, 1, 11], [2, 2, 22], [2, 3, 23]]

    def test_categories(self):
        first = grid([[0, 1, 1]], bands=['strata'], categories={'strata': {0: 'poor', 1: 'rich'}})
        second = grid([[0, 0, 2]])
        (srast, lookup) = sgstrat.map(first, second, details=True)

        assert lookup['stratamapped_cat'].tolist() == ['poor_0', 'rich_0', 'rich_2']
        assert srast.categories == {0: {0: 'poor_0', 10: 'rich_0', 12: 'rich_2'}}

    def test_write(self, tmp_path):
        filename = str(tmp_path / "mapped.tif")
        sgstrat.map(strat_raster_3(), strat_raster_4(), filename=filename)
        srast = sgstrat.SpatialRaster(filename)
        assert list(srast.strata()) == [0, 11, 22, 23]

    def test_overflow(self):
        first = grid([[99999, 0]])
        second = grid([[99999, 0]])
        with pytest.raises(ValueError):
            sgstrat.map(first, second)

    def test_map_inputs(self):
        with pytest.raises(ConfigurationError):
            sgstrat.map(strat_raster_3())

        with pytest.raises(TypeError):
            sgstrat.map(strat_raster_3(), strat_raster_3().band(0))

        with pytest.raises(ConfigurationError):
            sgstrat.map(strat_raster_3(), strat_raster_large())

        rast = grid(np.stack([[[0, 1]], [[2, 3]]]))
        with pytest.raises(ConfigurationError):
            sgstrat.map(rast, grid([[0, 1]]))

        with pytest.raises(ConfigurationError):
            sgstrat.map(grid([[0.5, 1]]), grid([[0, 1]]))
