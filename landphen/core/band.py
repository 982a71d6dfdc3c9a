"""
A band is a two-dimensional array that can be located via a spatial coordinate system.
Each band thus has a name and an array of values, which are usually numeric.

It relies on ``rasterio`` for reading data from files using ``GDAL`` drivers and on
``rasterstats`` for reducing band values by vector features.

landphen stores band data as `~numpy.ma.MaskedArray` so that no-data pixels are carried
through all computations as missing values.

Copyright (C) 2022 Lukas Valentin Graf

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""
from __future__ import annotations

import geopandas as gpd
import numpy as np
import rasterio as rio
import xarray as xr

from copy import deepcopy
from rasterio import Affine
from rasterio.crs import CRS
from rasterstats import zonal_stats
from shapely.geometry import box, MultiPolygon, Polygon
from typing import Any, Dict, List, Optional, Union


class GeoInfo(object):
    """
    Class for storing geo-localization information required to
    reference a raster band object in a spatial coordinate system.
    At its core this class contains all the attributes necessary to
    define a ``Affine`` transformation.

    :attrib epsg:
        EPSG code of the spatial reference system the raster data is projected
        to.
    :attrib ulx:
        upper left x coordinate of the raster band in the spatial reference system
        defined by the EPSG code. We assume ``GDAL`` defaults, therefore the coordinate
        should refer to the upper left *pixel* corner.
    :attrib uly:
        upper left y coordinate of the raster band in the spatial reference system
        defined by the EPSG code.
    :attrib pixres_x:
        pixel size (aka spatial resolution) in x direction.
    :attrib pixres_y:
        pixel size (aka spatial resolution) in y direction. Usually negative.
    """

    def __init__(
        self,
        epsg: int,
        ulx: Union[int, float],
        uly: Union[int, float],
        pixres_x: Union[int, float],
        pixres_y: Union[int, float],
    ):
        """
        Class constructor to get a new ``GeoInfo`` instance.

        >>> geo_info = GeoInfo(32611, 300000., 3800000., 30., -30.)
        >>> affine = geo_info.as_affine()

        :param epsg:
            EPSG code identifying the spatial reference system (e.g., 4326 for
            WGS84).
        :param ulx:
            upper left x coordinate in units of the spatial reference system.
        :param uly:
            upper left y coordinate in units of the spatial reference system.
        :param pixres_x:
            pixel grid cell size in x direction.
        :param pixres_y:
            pixel grid cell size in y direction.
        """
        # make sure the EPSG code is valid
        try:
            CRS.from_epsg(epsg)
        except Exception as e:
            raise ValueError(e)

        object.__setattr__(self, "epsg", epsg)
        object.__setattr__(self, "ulx", ulx)
        object.__setattr__(self, "uly", uly)
        object.__setattr__(self, "pixres_x", pixres_x)
        object.__setattr__(self, "pixres_y", pixres_y)

    def __setattr__(self, *args, **kwargs):
        raise TypeError("GeoInfo object attributes are immutable")

    def __delattr__(self, *args, **kwargs):
        raise TypeError("GeoInfo object attributes are immutable")

    def __repr__(self) -> str:
        return str(self.__dict__)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GeoInfo):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash(tuple(self.__dict__.values()))

    def as_affine(self) -> Affine:
        """
        Returns an ``rasterio.Affine`` compatible affine transformation

        :returns:
            ``GeoInfo`` instance as ``rasterio.Affine``
        """
        return Affine(
            a=self.pixres_x, b=0, c=self.ulx, d=0, e=self.pixres_y, f=self.uly
        )

    @classmethod
    def from_affine(cls, affine: Affine, epsg: int):
        """
        Returns a ``GeoInfo`` instance from a ``rasterio.Affine`` object

        :param affine:
            ``rasterio.Affine`` object
        :param epsg:
            EPSG code identifying the spatial coordinate system
        :returns:
            new ``GeoInfo`` instance
        """
        return cls(
            epsg=epsg, ulx=affine.c, uly=affine.f, pixres_x=affine.a, pixres_y=affine.e
        )


class Band(object):
    """
    Class for storing and accessing a geo-referenced raster band

    :attrib band_name:
        the band name identifies the raster band (e.g., 'red'). It can be
        any character string
    :attrib values:
        the actual raster data as ``numpy.ma.MaskedArray``. Plain ``numpy.ndarray``
        passed to the constructor are masked where they equal `nodata` or are NaN.
    :attrib geo_info:
        `GeoInfo` object defining the spatial reference system, upper left
        corner and pixel size (spatial resolution)
    :attrib band_alias:
        optional band alias (e.g., the band number in the source file)
    :attrib scale:
        scale (aka gain) parameter of the raster data.
    :attrib offset:
        offset parameter of the raster data.
    :attrib unit:
        optional (SI) physical unit of the band data
    :attrib nodata:
        numeric value indicating no-data. If not provided the nodata value
        is set to ``numpy.nan`` for floating point data, 0 and -999 for
        unsigned and signed integer data, respectively.
    """

    def __init__(
        self,
        band_name: str,
        values: Union[np.ndarray, np.ma.MaskedArray],
        geo_info: GeoInfo,
        band_alias: Optional[str] = "",
        scale: Optional[Union[int, float]] = 1.0,
        offset: Optional[Union[int, float]] = 0.0,
        unit: Optional[str] = "",
        nodata: Optional[Union[int, float]] = None,
    ):
        """
        Constructor to instantiate a new band object.

        :param band_name:
            name of the band.
        :param values:
            two-dimensional band data as ``numpy.ndarray`` or ``numpy.ma.MaskedArray``
        :param geo_info:
            `~landphen.core.band.GeoInfo` instance to allow for localizing
            the band data in a spatial reference system
        :param band_alias:
            optional alias name of the band
        :param scale:
            optional scale (aka gain) factor for the raster band data. The scale
            factor allows to scale the data back into its original value range.
            If not provided, `scale` is set to 1.
        :param offset:
            optional offset for the raster band data. If not provided, `offset`
            is set to 0.
        :param unit:
            optional (SI) physical unit of the band data
        :param nodata:
            numeric value indicating no-data.
        """

        # make sure the passed values are 2-dimensional
        if len(values.shape) != 2:
            raise ValueError("Only two-dimensional arrays are allowed")

        # check nodata value
        if nodata is None:
            if np.issubdtype(values.dtype, np.floating):
                nodata = np.nan
            elif np.issubdtype(values.dtype, np.signedinteger):
                nodata = -999
            elif np.issubdtype(values.dtype, np.unsignedinteger):
                nodata = 0

        # plain arrays are masked where they are nodata (or NaN)
        if not isinstance(values, np.ma.MaskedArray):
            mask = np.zeros(values.shape, dtype=bool)
            if np.issubdtype(values.dtype, np.floating):
                mask |= np.isnan(values)
            if nodata is not None and not np.isnan(nodata):
                mask |= values == nodata
            values = np.ma.masked_array(data=values, mask=mask)
        elif np.issubdtype(values.dtype, np.floating):
            values = np.ma.masked_invalid(values)

        object.__setattr__(self, "band_name", band_name)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "geo_info", geo_info)
        object.__setattr__(self, "band_alias", band_alias)
        object.__setattr__(self, "scale", scale)
        object.__setattr__(self, "offset", offset)
        object.__setattr__(self, "unit", unit)
        object.__setattr__(self, "nodata", nodata)

    def __setattr__(self, *args, **kwargs):
        raise TypeError("Band object attributes are immutable")

    def __delattr__(self, *args, **kwargs):
        raise TypeError("Band object attributes immutable")

    def __repr__(self) -> str:
        return f"landphen Band\n---------------------.\nName:    {self.band_name}\n" + \
            f"GeoInfo:    {self.geo_info}\nShape:    {self.values.shape}"

    @property
    def bounds(self) -> Polygon:
        """Spatial bounding box of the band"""
        minx = self.geo_info.ulx
        maxx = minx + self.ncols * self.geo_info.pixres_x
        maxy = self.geo_info.uly
        miny = maxy + self.nrows * self.geo_info.pixres_y
        return box(minx, miny, maxx, maxy)

    @property
    def coordinates(self) -> Dict[str, np.ndarray]:
        """x-y spatial band coordinates (pixel centers)"""
        nx, ny = self.ncols, self.nrows
        transform = self.transform
        x, _ = transform * (np.arange(nx) + 0.5, np.zeros(nx))
        _, y = transform * (np.zeros(ny), np.arange(ny) + 0.5)
        return {"x": x, "y": y}

    @property
    def crs(self) -> CRS:
        """Coordinate Reference System of the band"""
        return CRS.from_epsg(self.geo_info.epsg)

    @property
    def is_masked_array(self) -> bool:
        """Checks if the band values are a numpy masked array"""
        return isinstance(self.values, np.ma.MaskedArray)

    @property
    def meta(self) -> Dict[str, Any]:
        """
        Provides a ``rasterio`` compatible dictionary with raster
        metadata
        """
        return {
            "width": self.ncols,
            "height": self.nrows,
            "transform": self.geo_info.as_affine(),
            "count": 1,
            "dtype": str(self.values.dtype),
            "crs": self.crs,
        }

    @property
    def nrows(self) -> int:
        """Number of rows of the band"""
        return self.values.shape[0]

    @property
    def ncols(self) -> int:
        """Number of columns of the band"""
        return self.values.shape[1]

    @property
    def shape(self) -> tuple:
        return self.values.shape

    @property
    def transform(self) -> Affine:
        """Affine transformation of the band"""
        return self.geo_info.as_affine()

    @classmethod
    def from_rasterio(
        cls,
        riods: rio.io.DatasetReader,
        band_idx: Optional[int] = 1,
        band_name_dst: Optional[str] = "B1",
        epsg_code: Optional[int] = None,
        **kwargs,
    ):
        """
        Creates a new ``Band`` instance from an **opened** ``rasterio`` dataset.
        Reads exactly **one** band. Opening and closing the dataset is left to
        the caller so that multiple bands can be read from a single handle.

        :param riods:
            opened ``rasterio`` dataset reader
        :param band_idx:
            band index of the raster band to read (starting with 1).
        :param band_name_dst:
            name of the raster band in the resulting ``Band`` instance.
        :param epsg_code:
            custom EPSG code of the raster dataset in case the raster has no
            internally-described EPSG code.
        :param kwargs:
            further key-word arguments to pass to `~landphen.core.band.Band`.
        :returns:
            new ``Band`` instance
        """
        if not 1 <= band_idx <= riods.count:
            raise IndexError(
                f"Band index {band_idx} is out of range for a "
                f"dataset with {riods.count} bands"
            )
        if epsg_code is None:
            if riods.crs is None:
                raise ValueError(f"{riods.name} has no coordinate reference system")
            epsg_code = riods.crs.to_epsg()
            if epsg_code is None:
                raise ValueError(f"{riods.name} has no EPSG code: {riods.crs}")
        geo_info = GeoInfo.from_affine(affine=riods.transform, epsg=epsg_code)

        # pixels flagged as nodata in the dataset are masked
        values = riods.read(band_idx, masked=True)
        nodata = riods.nodatavals[band_idx - 1]
        kwargs.setdefault("nodata", nodata)

        return cls(
            band_name=band_name_dst,
            values=values,
            geo_info=geo_info,
            **kwargs,
        )

    def copy(self):
        """Returns a copy of the current ``Band`` instance"""
        attrs = deepcopy(self.__dict__)
        return Band(**attrs)

    def get_attributes(self, **kwargs) -> Dict[str, Any]:
        """
        Returns raster data attributes in ``xarray`` compatible way

        :param kwargs:
            optional key-word arguments to add to the attributes
        :returns:
            dictionary compatible with ``xarray`` attributes
        """
        attrs = {
            "crs": self.crs.to_string(),
            "transform": tuple(self.transform)[:6],
            "nodata": self.nodata,
            "scale": self.scale,
            "offset": self.offset,
            "unit": self.unit,
        }
        attrs.update(kwargs)
        return attrs

    def reduce(
        self,
        by: Union[gpd.GeoDataFrame, Polygon, MultiPolygon, None] = None,
        method: Optional[List[str]] = ["mean"],
    ) -> List[Dict[str, float]]:
        """
        Reduces the raster data to scalar values by calling `rasterstats`.

        The reduction is done either on the whole band or per vector feature.
        Masked pixels are ignored. Features without any valid pixel (e.g.,
        features that do not overlap the raster) get NaN. The result list
        is row-aligned with the features.

        :param by:
            optional vector features by which to reduce the band. If None the
            full spatial extent of the band is used.
        :param method:
            list of `rasterstats` statistic names (e.g., `mean`, `count`).
        :returns:
            list of dictionaries with one entry per feature
        """
        if by is None:
            features = gpd.GeoDataFrame(geometry=[self.bounds], crs=self.crs)
        elif isinstance(by, gpd.GeoDataFrame):
            features = by
        elif isinstance(by, (Polygon, MultiPolygon)):
            features = gpd.GeoDataFrame(geometry=[by], crs=self.crs)
        else:
            raise TypeError(
                "by expected (Multi)Polygon or GeoDataFrame "
                + f"objects - got {type(by)} instead"
            )
        # check if features has the same CRS as the band. Reproject features if required
        if features.crs is None:
            raise ValueError(
                "Cannot handle vector features without spatial coordinate reference system"
            )
        if not features.crs == self.crs:
            features = features.to_crs(crs=self.crs)

        if isinstance(method, str):
            method = [method]

        # rasterstats expects NaN for missing pixels in floating point arrays
        vals = self.values.astype(float).filled(np.nan)
        res = zonal_stats(
            list(features.geometry),
            vals,
            affine=self.transform,
            stats=method,
            nodata=np.nan,
        )
        # rasterstats returns None instead of nan for empty features
        return [
            {k: np.nan if v is None else float(v) for k, v in feature_stats.items()}
            for feature_stats in res
        ]

    def to_xarray(self, attributes: Dict[str, Any] = {}) -> xr.DataArray:
        """
        Returns a ``xarray.DataArray`` of the band data. Masked pixels are
        set to NaN.

        :param attributes:
            additional attributes to set to the ``DataArray``
        :returns:
            ``xarray.DataArray`` with `y` and `x` coordinates
        """
        coords = self.coordinates
        return xr.DataArray(
            data=self.values.astype(float).filled(np.nan),
            dims=("y", "x"),
            coords={"y": coords["y"], "x": coords["x"]},
            attrs=self.get_attributes(**attributes),
            name=self.band_name,
        )
