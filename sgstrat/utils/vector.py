# ******************************************************************************
#
#  Project: sgstrat
#  Purpose: geopandas wrapper for vector layers
#  Author: Joseph Meyer
#  Date: October, 2026
#
# ******************************************************************************

from typing import Optional

import geopandas as gpd

from sgstrat.errors import ConfigurationError

class SpatialVector:
    """
    A wrapper of one or more named geopandas GeoDataFrame layers.

    Sampling functions in this package return a SpatialVector with a single
    layer called 'samples'. Access networks and existing sample networks are
    passed in as SpatialVectors as well.

    Public Attributes:
    --------------------
    layers : list[str]
        a list of layer names

    Public Methods:
    --------------------
    info()
        takes an optional argument specify the layer, and prints vector metadata to console
    """
    def __init__(self,
                 image: str | gpd.GeoDataFrame | dict[str, gpd.GeoDataFrame],
                 layer_name: str = "layer"):
        """
        Constructing method for the SpatialVector class.

        Parameters
        --------------------
        image: str | GeoDataFrame | dict[str, GeoDataFrame]
           a path to a vector file (every layer is read), a single GeoDataFrame
           (stored under layer_name), or a dict of layer names to GeoDataFrames
        layer_name: str
           the layer name to use if a single GeoDataFrame is given

        Raises
        --------------------
        TypeError:
            if image is not one of the accepted types
        """
        if type(image) is str:
            names = list(gpd.list_layers(image)["name"])
            self.layer_dict = {name: gpd.read_file(image, layer=name) for name in names}
        elif isinstance(image, gpd.GeoDataFrame):
            self.layer_dict = {layer_name: image}
        elif type(image) is dict:
            for name, gdf in image.items():
                if not isinstance(gdf, gpd.GeoDataFrame):
                    raise TypeError("layer '{}' must be a geopandas.GeoDataFrame.".format(name))
            self.layer_dict = dict(image)
        else:
            raise TypeError("parameter passed to SpatialVector constructor must be of type str, geopandas.GeoDataFrame, or dict.")

        self.layers = list(self.layer_dict.keys())

    def __len__(self):
        return sum(len(gdf) for gdf in self.layer_dict.values())

    def get_layer_name(self, layer_name: Optional[str] = None) -> str:
        """
        Resolves which layer to use. If layer_name is None the vector must
        contain a single layer.

        Raises
        --------------------
        ConfigurationError:
            if layer_name is None and there are multiple layers, or the layer does not exist
        """
        if layer_name is None:
            if len(self.layers) > 1:
                raise ConfigurationError("if there are multiple layers in the vector, layer_name must be defined.")
            return self.layers[0]

        if layer_name not in self.layers:
            raise ConfigurationError("layer '{}' does not exist in the vector.".format(layer_name))

        return layer_name

    def layer(self, layer_name: Optional[str] = None) -> gpd.GeoDataFrame:
        return self.layer_dict[self.get_layer_name(layer_name)]

    def print_info(self,
                   layer_name: str,
                   gdf: gpd.GeoDataFrame):
        """
        prints layer information of a single layer.
        """
        (xmin, ymin, xmax, ymax) = gdf.total_bounds
        geom_types = sorted(set(gdf.geom_type.dropna()))

        print("{} layer info:".format(layer_name))
        print("feature count: {}".format(len(gdf)))
        print("field count: {}".format(len(gdf.columns) - 1))
        print("geometry type: {}".format(", ".join(geom_types)))
        print("bounds (xmin, xmax, ymin, ymax): ({}, {}, {}, {})".format(xmin, xmax, ymin, ymax))
        if gdf.crs: print("crs: {}".format(gdf.crs))
        print()

    def info(self,
             layer: Optional[int | str] = None):
        """
        calls self.print_info depending on layer parameter. If no layer is given,
        print all layers. A layer may be specified by either a str or an int.
        """
        if type(layer) == str:
            self.print_info(layer, self.layer(layer))
        elif type(layer) == int:
            self.print_info(self.layers[layer], self.layer_dict[self.layers[layer]])
        else:
            for layer in self.layers:
                self.print_info(layer, self.layer_dict[layer])

    def samples_as_wkt(self) -> list[str]:
        """
        Returns the geometries of the 'samples' layer as wkt strings.

        Raises
        --------------------
        ValueError:
            if this vector does not have a layer called 'samples'
        """
        if "samples" not in self.layers:
            raise ValueError("this vector does not have a layer 'samples'")

        return list(self.layer_dict["samples"].geometry.to_wkt())

    def to_geopandas(self, layer_name: Optional[str] = None) -> gpd.GeoDataFrame:
        """
        Returns a copy of a layer as a GeoDataFrame.
        """
        return self.layer(layer_name).copy()

    @classmethod
    def from_geopandas(cls, gdf: gpd.GeoDataFrame, layer_name: str = "layer"):
        if not isinstance(gdf, gpd.GeoDataFrame):
            raise TypeError("the gdf parameter passed to from_geopandas() must be of type geopandas.GeoDataFrame.")

        return cls(gdf, layer_name=layer_name)

    def write(self, filename: str, layer_name: Optional[str] = None):
        """
        Writes a layer to disk, the driver is inferred by geopandas from the filename.
        """
        self.layer(layer_name).to_file(filename)
