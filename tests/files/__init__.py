import geopandas as gpd
import numpy as np
import shapely

import sgstrat

CRS = "EPSG:3005"
PIXEL = 10

def strat_raster_3():
    """
    20 x 20 stratification with strata areas {0: 100, 1: 100, 2: 200}.
    """
    arr = np.zeros((20, 20))
    arr[5:10, :] = 1
    arr[10:, :] = 2
    return sgstrat.SpatialRaster(arr, xmin=0, ymax=200, pixel_width=PIXEL, pixel_height=PIXEL, bands=["strata"], crs=CRS)

def strat_raster_4():
    """
    20 x 20 stratification with four strata of 100 pixels each.
    """
    arr = np.repeat(np.arange(4), 5)[:, np.newaxis] * np.ones((20, 20))
    return sgstrat.SpatialRaster(arr, xmin=0, ymax=200, pixel_width=PIXEL, pixel_height=PIXEL, bands=["strata"], crs=CRS)

def strat_raster_isolated():
    """
    10 x 10 stratification of strata 0, with a 2 x 2 block of strata 1 in
    the top left corner and a single isolated strata 1 pixel at (7, 7).
    """
    arr = np.zeros((10, 10))
    arr[0:2, 0:2] = 1
    arr[7, 7] = 1
    return sgstrat.SpatialRaster(arr, xmin=0, ymax=100, pixel_width=PIXEL, pixel_height=PIXEL, crs=CRS)

def strat_raster_large():
    """
    40 x 40 stratification of two strata split down the middle row, with a
    nodata border one pixel wide.
    """
    arr = np.zeros((40, 40))
    arr[20:, :] = 1
    arr[0, :] = -1
    arr[-1, :] = -1
    arr[:, 0] = -1
    arr[:, -1] = -1
    return sgstrat.SpatialRaster(arr, xmin=0, ymax=400, pixel_width=PIXEL, pixel_height=PIXEL, bands=["strata"], nodata=-1, crs=CRS)

def metric_raster(srast):
    """
    Two band metric raster on the grid of srast. 'zq90' is constant within
    strata 0 and varies within the other strata, 'zsd' is a ramp.
    """
    values = srast.band(0)
    rows = np.arange(srast.height)[:, np.newaxis] * np.ones((srast.height, srast.width))
    cols = np.arange(srast.width)[np.newaxis, :] * np.ones((srast.height, srast.width))

    zq90 = np.where(values == 0, 10.0, 10.0 + values * (cols % 4))
    zsd = rows + cols
    return sgstrat.SpatialRaster(
        np.stack([zq90, zsd]),
        xmin=srast.xmin,
        ymax=srast.ymax,
        pixel_width=srast.pixel_width,
        pixel_height=srast.pixel_height,
        bands=["zq90", "zsd"],
        crs=CRS,
    )

def access_vector(x=5, ymin=0, ymax=400):
    """
    A single vertical access line at x.
    """
    gdf = gpd.GeoDataFrame(geometry=[shapely.LineString([(x, ymin), (x, ymax)])], crs=CRS)
    return sgstrat.SpatialVector(gdf, layer_name="access")

def points_vector(coords, layer_name="existing", **columns):
    gdf = gpd.GeoDataFrame(
        columns,
        geometry=gpd.points_from_xy([c[0] for c in coords], [c[1] for c in coords]),
        crs=CRS,
    )
    return sgstrat.SpatialVector(gdf, layer_name=layer_name)

def cell_center(srast, row, col):
    return (srast.xmin + (col + 0.5) * srast.pixel_width, srast.ymax - (row + 0.5) * srast.pixel_height)

def pairwise_min_distance(gdf):
    x = gdf.geometry.x.to_numpy()
    y = gdf.geometry.y.to_numpy()
    d = np.hypot(x[:, np.newaxis] - x[np.newaxis, :], y[:, np.newaxis] - y[np.newaxis, :])
    d[np.diag_indices(len(x))] = np.inf
    return d.min()

__all__ = [
    'CRS',
    'PIXEL',
    'strat_raster_3',
    'strat_raster_4',
    'strat_raster_isolated',
    'strat_raster_large',
    'metric_raster',
    'access_vector',
    'points_vector',
    'cell_center',
    'pairwise_min_distance',
]
