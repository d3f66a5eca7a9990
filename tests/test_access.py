import pytest
import geopandas as gpd
import numpy as np
import shapely

import sgstrat
from sgstrat.errors import ConfigurationError
from sgstrat.sample.access import (
    access_distance,
    access_mask,
    check_buffers,
    eligible_cells,
)

from files import (
    CRS,
    strat_raster_large,
    access_vector,
    points_vector,
)

class TestAccess:
    rast = strat_raster_large()

    def test_distance_to_line(self):
        distance = access_distance(self.rast, access_vector())

        #pixel centers are at x = 5 + 10 * col, the line is at x = 5
        for col in [0, 1, 17, 39]:
            assert np.allclose(distance[:, col], 10 * col)

    def test_distance_only_for_valid_cells(self):
        valid = ~np.isnan(self.rast.band())
        distance = access_distance(self.rast, access_vector(), valid=valid)
        assert np.isnan(distance[0, 5])
        assert distance[5, 5] == 50

    def test_distance_raster(self):
        arr = np.arange(1600, dtype=np.float64).reshape(40, 40)
        drast = sgstrat.SpatialRaster(arr, xmin=0, ymax=400, pixel_width=10, pixel_height=10, crs=CRS)
        assert np.array_equal(access_distance(self.rast, drast), arr)

        wrong_grid = sgstrat.SpatialRaster(arr, xmin=10, ymax=400, pixel_width=10, pixel_height=10, crs=CRS)
        with pytest.raises(ConfigurationError):
            access_distance(self.rast, wrong_grid)

    def test_mask(self):
        distance = np.array([0, 50, 50.5, 200, 200.5, np.nan])
        assert list(access_mask(distance, 50, 200)) == [False, False, True, True, False, False]
        assert list(access_mask(distance, None, 200)) == [True, True, True, True, False, False]
        assert list(access_mask(distance, 50, None)) == [False, False, True, True, True, False]

    def test_eligible_cells(self):
        eligible = eligible_cells(self.rast, self.rast.band(), access_vector(), None, 50, 200)

        #border cells are nodata
        assert not eligible[0].any()
        assert not eligible[-1].any()

        assert not eligible[1:-1, :6].any()
        assert eligible[1:-1, 6:21].all()
        assert not eligible[1:-1, 21:].any()

    def test_eligible_without_access(self):
        eligible = eligible_cells(self.rast, self.rast.band())
        assert np.array_equal(eligible, ~np.isnan(self.rast.band()))

        with pytest.raises(ConfigurationError):
            eligible_cells(self.rast, self.rast.band(), None, None, 50, 200)

    def test_invalid_buffers(self):
        with pytest.raises(ConfigurationError):
            check_buffers(200, 50)

        with pytest.raises(ConfigurationError):
            check_buffers(-1, 50)

        with pytest.raises(ConfigurationError):
            check_buffers(0, -5)

        check_buffers(None, None)
        check_buffers(0, 50)

    def test_invalid_access_geometry(self):
        with pytest.raises(ConfigurationError):
            access_distance(self.rast, points_vector([(5, 5)]))

    def test_access_crs_mismatch(self):
        gdf = gpd.GeoDataFrame(geometry=[shapely.LineString([(5, 0), (5, 400)])], crs="EPSG:4326")
        with pytest.raises(ConfigurationError):
            access_distance(self.rast, sgstrat.SpatialVector(gdf))

    def test_multiple_layers(self):
        vec = sgstrat.SpatialVector({
            'roads': access_vector().layer(),
            'trails': access_vector(x=395).layer(),
        })

        with pytest.raises(ConfigurationError):
            access_distance(self.rast, vec)

        distance = access_distance(self.rast, vec, 'trails')
        assert distance[5, 39] == 0
