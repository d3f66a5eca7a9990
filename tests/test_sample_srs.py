import pytest
import numpy as np

import sgstrat
from sgstrat.errors import ConfigurationError

from files import (
    strat_raster_large,
    access_vector,
    pairwise_min_distance,
)

class TestSrs:
    rast = strat_raster_large()

    def check_points_in_data(self, samples):
        values = self.rast.band(0).ravel()
        cells = self.rast.xy_cell(samples.geometry.x, samples.geometry.y)
        assert (cells >= 0).all()
        assert not np.isnan(values[cells]).any()

    def test_srs(self):
        samples = sgstrat.srs(self.rast, num_samples=100, seed=1)
        assert samples.layers == ['samples']
        gdf = samples.layer()
        assert len(gdf) == 100
        assert set(gdf.geom_type) == {'Point'}
        assert gdf.crs.to_epsg() == 3005
        self.check_points_in_data(gdf)

    def test_mindist(self):
        samples = sgstrat.srs(self.rast, num_samples=50, mindist=30, seed=2).layer()
        assert len(samples) == 50
        assert pairwise_min_distance(samples) >= 30

    def test_seed(self):
        first = sgstrat.srs(self.rast, num_samples=30, mindist=20, seed=7)
        second = sgstrat.srs(self.rast, num_samples=30, mindist=20, seed=7)
        assert first.samples_as_wkt() == second.samples_as_wkt()

    def test_access(self):
        samples = sgstrat.srs(self.rast, num_samples=40, access=access_vector(), buff_inner=50, buff_outer=200, seed=3).layer()
        assert len(samples) == 40
        distance = samples.geometry.distance(access_vector().layer().geometry.iloc[0])
        assert (distance > 50).all()
        assert (distance <= 200).all()

    def test_not_enough_points(self, capsys):
        samples = sgstrat.srs(self.rast, num_samples=500, mindist=100, seed=4).layer()
        assert len(samples) < 500
        assert "unable to find the full 500 samples" in capsys.readouterr().out

    def test_write(self, tmp_path):
        filename = str(tmp_path / "samples.geojson")
        sgstrat.srs(self.rast, num_samples=10, seed=5, filename=filename)
        assert len(sgstrat.SpatialVector(filename)) == 10

    def test_incorrect_inputs(self):
        with pytest.raises(TypeError):
            sgstrat.srs(self.rast.band(0), num_samples=10)

        with pytest.raises(TypeError):
            sgstrat.srs(self.rast, num_samples=10.0)

        with pytest.raises(ConfigurationError):
            sgstrat.srs(self.rast, num_samples=0)

        with pytest.raises(ConfigurationError):
            sgstrat.srs(self.rast, num_samples=10, mindist=-1)

        with pytest.raises(ConfigurationError):
            sgstrat.srs(self.rast, num_samples=10, buff_outer=100)

        with pytest.raises(ConfigurationError):
            sgstrat.srs(self.rast, num_samples=10, access=access_vector(), buff_inner=100, buff_outer=50)
