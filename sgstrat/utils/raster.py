# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: in-memory raster grid used for stratification and sampling
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

from typing import Iterator, Optional

import numpy as np
import rasterio
import rasterio.transform

from sgstrat.errors import ConfigurationError

class SpatialRaster:
    """
    An in-memory raster grid. Band data is held as float64 NumPy arrays with
    nodata values converted to NaN, cells are addressed either by (row, col)
    or by their linear index row * width + col.

    Reading from disk is delegated to rasterio. A SpatialRaster may also be
    built directly from a NumPy array and the values of its geotransform,
    which is how stratification functions in this package create their outputs.

    Accessing raster data:

        raster data can be accessed in the form of a NumPy array using the Python bracket syntax.
        The first dimension is the band, followed by the y and x dimensions like so [band][y][x].
        The band can be identified by either a band name or an index, which, following Python's
        standard is zero-indexed. NumPy's array slicing may also be used.

        examples:
        rast = sgstrat.SpatialRaster('test.tif')

        #returns a 2d numpy array of the first raster band
        rast[0]

        #returns a 3d numpy array of the first and second raster band
        rast[0:2]

        #returns a 2d numpy array of the 'zq90' band
        rast['zq90']

        #returns a 1d numpy array of the first row of the 'zsd' band
        rast['zsd', 0]

    Accessing raster information:

        raster metadata can be displayed using the info() function. Info
        inclues: raster driver, band names, dimensions, pixel size, and bounds.

    Public Attributes
    --------------------
    driver : str
        rasterio driver the data was read with, or 'MEM' for in-memory arrays
    width : int
        the pixel width of the raster image
    height : int
        the pixel height of the raster image
    band_count : int
        the number of bands in the raster image
    bands : list[str]
        the raster band names
    crs : rasterio.crs.CRS | None
        coordinate reference system, None when unknown
    xmin, xmax, ymin, ymax : float
        bounds of the raster
    pixel_width, pixel_height : float
        (positive) pixel size
    categories : dict[int, dict[int, str]]
        optional labels of stratum values, keyed by band index
    """
    filename = ""

    def __init__(self,
                 image: str | np.ndarray,
                 xmin: float = 0,
                 ymax: float = 0,
                 pixel_width: float = 1,
                 pixel_height: float = 1,
                 bands: Optional[list[str]] = None,
                 nodata: Optional[float | list[Optional[float]]] = None,
                 crs=None,
                 categories: Optional[dict[int | str, dict[int, str]]] = None):
        """
        Constructing method for the SpatialRaster class.

        Either a raster path is given (read with rasterio, in which case the
        geotransform arguments are ignored), or a 2d (height, width) or 3d
        (band, height, width) NumPy array along with its geotransform.

        Parameters
        --------------------
        image : str | np.ndarray
            specifies a raster file path or the raster data
        xmin : float
            x coordinate of the left edge
        ymax : float
            y coordinate of the top edge
        pixel_width : float
            pixel size in x
        pixel_height : float
            pixel size in y (positive)
        bands : list[str]
            band names, defaults to 'band_0', 'band_1', ...
        nodata : float | list[float]
            nodata value(s) which are converted to NaN
        crs :
            anything accepted by rasterio.crs.CRS.from_user_input
        categories : dict
            optional labels of stratum values, keyed by band index or name

        Raises
        --------------------
        TypeError:
            if image is neither a str nor a np.ndarray
        ConfigurationError:
            if the raster is rotated, or the arguments are inconsistent
        """
        if type(image) is str:
            with rasterio.open(image) as ds:
                self._load_dataset(ds, ds.read())
            self.filename = image
        elif isinstance(image, np.ndarray):
            self._load(
                image, xmin, ymax, pixel_width, pixel_height,
                bands, nodata, crs, "MEM"
            )
        else:
            raise TypeError("parameter passed to SpatialRaster constructor must be of type str or np.ndarray")

        self.categories = {}
        if categories:
            for band, labels in categories.items():
                self.categories[self.get_band_index(band)] = {int(k): str(v) for k, v in labels.items()}

    def _load_dataset(self, ds, arr):
        transform = ds.transform
        if transform.b != 0 or transform.d != 0:
            raise ConfigurationError("rotated rasters are not supported.")

        names = [desc if desc else "band_{}".format(i) for i, desc in enumerate(ds.descriptions)]
        self._load(
            arr, transform.c, transform.f, transform.a, -transform.e,
            names, list(ds.nodatavals), ds.crs, ds.driver
        )

    def _load(self, arr, xmin, ymax, pixel_width, pixel_height, bands, nodata, crs, driver):
        arr = np.array(arr, dtype=np.float64)
        if arr.ndim == 2:
            arr = arr[np.newaxis, :, :]
        if arr.ndim != 3:
            raise ConfigurationError("raster data must have the shape (height, width) or (band_count, height, width).")

        if pixel_width <= 0 or pixel_height <= 0:
            raise ConfigurationError("pixel_width and pixel_height must be greater than 0.")

        (band_count, height, width) = arr.shape

        if bands is None:
            bands = ["band_{}".format(i) for i in range(band_count)]
        if len(bands) != band_count:
            raise ConfigurationError("{} band names given, but the raster has {} bands.".format(len(bands), band_count))

        if nodata is not None:
            if not isinstance(nodata, (list, tuple)):
                nodata = [nodata] * band_count
            for i, value in enumerate(nodata):
                if value is not None and not np.isnan(value):
                    arr[i][arr[i] == value] = np.nan

        arr.flags.writeable = False

        self.arr = arr
        self.driver = driver
        self.band_count = band_count
        self.height = height
        self.width = width
        self.pixel_width = float(pixel_width)
        self.pixel_height = float(pixel_height)
        self.xmin = float(xmin)
        self.ymax = float(ymax)
        self.xmax = self.xmin + width * self.pixel_width
        self.ymin = self.ymax - height * self.pixel_height
        self.crs = rasterio.crs.CRS.from_user_input(crs) if crs is not None else None
        self.bands = list(bands)
        self.band_name_dict = {}
        for i in range(0, len(self.bands)):
            self.band_name_dict[self.bands[i]] = i

    def info(self):
        """
        Displays driver, band, size, pixel size, and bound information of the raster.
        """
        print("driver: {}".format(self.driver))
        print("bands: {}".format(", ".join(self.bands)))
        print("size: {} x {} x {}".format(self.band_count, self.width, self.height))
        print("pixel size: (x, y): ({}, {})".format(self.pixel_width, self.pixel_height))
        print("bounds (xmin, xmax, ymin, ymax): ({}, {}, {}, {})".format(self.xmin, self.xmax, self.ymin, self.ymax))
        print("crs: {}".format(self.crs))

    def get_band_index(self, band: Optional[str | int]) -> int:
        """
        Converts a band name to an index if required, and checks the band exists.

        If band is None the raster must contain a single band.

        Parameters:
        band: str or int or None
            string representing a band or int representing a band

        Raises
        --------------------
        ConfigurationError:
            if band is None and the raster has more than one band, or the band does not exist
        """
        if band is None:
            if self.band_count != 1:
                raise ConfigurationError("a band must be specified for a raster with {} bands.".format(self.band_count))
            return 0

        if type(band) is str:
            if band not in self.band_name_dict:
                raise ConfigurationError("band {} not in given raster.".format(band))
            return self.band_name_dict[band]

        if band < 0 or band >= self.band_count:
            msg = "0-indexed band of " + str(band) + " given, but raster only has " + str(self.band_count) + " bands."
            raise ConfigurationError(msg)

        return int(band)

    def band(self, band: Optional[str | int] = None) -> np.ndarray:
        """
        gets a (read-only) numpy array with the specified bands data.
        """
        return self.arr[self.get_band_index(band)]

    def __getitem__(self, index):
        if type(index) is tuple:
            band, rest = index[0], index[1:]
        else:
            band, rest = index, ()

        if type(band) is slice:
            return self.arr[band][(slice(None),) + rest]

        return self.band(band)[rest]

    def strata(self, band: Optional[str | int] = None) -> np.ndarray:
        """
        Returns the sorted distinct stratum values of a band, nodata excluded.

        Raises
        --------------------
        ConfigurationError:
            if the band contains values which are not non-negative integers
        """
        values = self.band(band)
        values = np.unique(values[~np.isnan(values)])

        if np.any(values < 0) or np.any(values != np.floor(values)):
            raise ConfigurationError("stratification raster values must be non-negative integers.")

        return values.astype(np.int64)

    def cells_for_stratum(self, stratum: int, band: Optional[str | int] = None) -> Iterator[int]:
        """
        Yields the linear cell indices of a stratum in ascending order.
        Every call starts a new pass over the band.
        """
        values = self.band(band).ravel()
        for cell in np.flatnonzero(values == stratum):
            yield int(cell)

    def neighbors(self, cell: int, wrow: int = 3, wcol: int = 3) -> np.ndarray:
        """
        Returns the linear indices of the wrow x wcol window around a cell,
        clipped at the raster edges.

        The window spans rows row - (wrow - 1) // 2 to row + wrow // 2 (and
        the same for columns), so odd windows are centered on the cell and
        even windows extend one further below/right of it.
        """
        if wrow < 1 or wcol < 1:
            raise ConfigurationError("window dimensions must be at least 1.")

        if cell < 0 or cell >= self.width * self.height:
            raise IndexError("cell {} is outside of the raster.".format(cell))

        row, col = divmod(int(cell), self.width)
        rows = np.arange(max(row - (wrow - 1) // 2, 0), min(row + wrow // 2, self.height - 1) + 1)
        cols = np.arange(max(col - (wcol - 1) // 2, 0), min(col + wcol // 2, self.width - 1) + 1)
        return (rows[:, np.newaxis] * self.width + cols[np.newaxis, :]).ravel()

    def cell_xy(self, cells) -> tuple[np.ndarray, np.ndarray]:
        """
        Returns the pixel center coordinates of the given linear cell indices.
        """
        rows, cols = np.divmod(np.asarray(cells, dtype=np.int64), self.width)
        x = self.xmin + (cols + 0.5) * self.pixel_width
        y = self.ymax - (rows + 0.5) * self.pixel_height
        return x, y

    def xy_cell(self, x, y) -> np.ndarray:
        """
        Returns the linear index of the cell containing each (x, y), or -1
        for coordinates outside of the raster.
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        cols = np.floor((x - self.xmin) / self.pixel_width).astype(np.int64)
        rows = np.floor((self.ymax - y) / self.pixel_height).astype(np.int64)
        inside = (cols >= 0) & (cols < self.width) & (rows >= 0) & (rows < self.height)
        return np.where(inside, rows * self.width + cols, -1)

    def check_geometry(self, other: "SpatialRaster", name: str = "raster"):
        """
        Ensures another raster shares this rasters extent, resolution and crs.

        Raises
        --------------------
        ConfigurationError:
            if the extents, resolutions or coordinate reference systems differ
        """
        if not np.isclose(self.pixel_width, other.pixel_width) or not np.isclose(self.pixel_height, other.pixel_height):
            raise ConfigurationError("spatial resolution of '{}' does not match the stratification raster.".format(name))

        if (self.width != other.width or self.height != other.height
                or not np.isclose(self.xmin, other.xmin) or not np.isclose(self.ymax, other.ymax)):
            raise ConfigurationError("extent of '{}' does not match the stratification raster.".format(name))

        if self.crs is not None and other.crs is not None and self.crs != other.crs:
            raise ConfigurationError("coordinate reference system of '{}' does not match the stratification raster.".format(name))

    @classmethod
    def from_rasterio(cls, ds, arr = None):
        """
        Creates a SpatialRaster from an open rasterio dataset, optionally
        replacing its data with 'arr'.
        """
        if not isinstance(ds, (rasterio.io.DatasetReader, rasterio.io.DatasetWriter)):
            raise TypeError("the ds parameter passed to from_rasterio() must be of type rasterio.io.DatasetReader or rasterio.io.DatasetWriter.")

        if arr is None:
            arr = ds.read()
        else:
            if type(arr) is not np.ndarray:
                raise TypeError("if the array parameter is passed, it must be of type np.ndarray")

            shape = arr.shape
            if (len(shape)) == 2:
                (height, width) = shape
                if ds.count != 1:
                    raise ConfigurationError("if the array parameter contains only a single band with shape (height, width), the raster must contain only a single band.")
            else:
                (band_count, height, width) = shape
                if (band_count != ds.count):
                    raise ConfigurationError("the array parameter must contains the same number of bands as the raster with shape (band_count, height, width).")

            if height != ds.height:
                raise ConfigurationError("the height of the array passed must be equal to the height of the raster dataset.")

            if width != ds.width:
                raise ConfigurationError("the width of the array passed must be equal to the width of the raster dataset.")

        rast = cls.__new__(cls)
        rast._load_dataset(ds, arr)
        rast.filename = ds.name
        rast.categories = {}
        return rast

    def to_rasterio(self):
        """
        Returns an in-memory (GTiff) rasterio dataset holding a copy of the raster.
        """
        transform = rasterio.transform.from_origin(self.xmin, self.ymax, self.pixel_width, self.pixel_height)
        ds = rasterio.MemoryFile().open(
            driver="GTiff",
            width=self.width,
            height=self.height,
            count=self.band_count,
            crs=self.crs,
            transform=transform,
            dtype="float64",
            nodata=np.nan,
        )
        ds.write(self.arr)

        for i in range(len(self.bands)):
            ds.set_band_description(i + 1, self.bands[i])

        return ds

    def write(self, filename: str):
        """
        Writes the raster to a GTiff file, NaN is written as the nodata value.
        """
        transform = rasterio.transform.from_origin(self.xmin, self.ymax, self.pixel_width, self.pixel_height)
        with rasterio.open(
            filename,
            "w",
            driver="GTiff",
            width=self.width,
            height=self.height,
            count=self.band_count,
            crs=self.crs,
            transform=transform,
            dtype="float64",
            nodata=np.nan,
        ) as ds:
            ds.write(self.arr)
            for i in range(len(self.bands)):
                ds.set_band_description(i + 1, self.bands[i])

        self.filename = filename
