"""
A Scene is a collection of the six spectral bands captured at one acquisition date.
The bands are read from a single multi-band raster file in a fixed order
(blue, green, red, nir, swir_1, swir_2) and labeled semantically.

.. highlight:: python
.. code-block:: python

    from landphen.core.scene import Scene, SceneSource

    source = SceneSource(fpath='scenes/LC08_20180612.tif', acquisition_date='2018-06-12')
    scene = Scene.from_scene_source(source)
    ndvi = scene.calc_si('NDVI')

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

import datetime
import numpy as np
import rasterio as rio

from collections.abc import Mapping
from pathlib import Path
from rasterio.errors import RasterioError
from typing import Any, Dict, List, Optional, Sequence, Union

from landphen.config import get_settings
from landphen.core.band import Band, GeoInfo
from landphen.core.spectral_indices import SpectralIndices
from landphen.utils.exceptions import (
    BandCountMismatch,
    BandNotFoundError,
    SourceUnreadable,
)
from landphen.utils.timestamps import parse_date_label

Settings = get_settings()
logger = Settings.logger


class SceneSource(object):
    """
    Reference to a scene file together with its externally known acquisition date.

    :attrib fpath:
        file-path to the multi-band raster file
    :attrib acquisition_date:
        acquisition date of the scene as ``datetime.date``
    """

    def __init__(
        self,
        fpath: Union[str, Path],
        acquisition_date: Union[datetime.date, str],
    ):
        """
        :param fpath:
            file-path to the multi-band raster file
        :param acquisition_date:
            acquisition date as ``datetime.date`` or `YYYY-MM-DD` string.
            Raises `DateLabelUnparseable` if the label cannot be parsed.
        """
        object.__setattr__(self, "fpath", Path(fpath))
        object.__setattr__(
            self,
            "acquisition_date",
            parse_date_label(acquisition_date, date_format=Settings.DATE_FORMAT),
        )

    def __setattr__(self, *args, **kwargs):
        raise TypeError("SceneSource object attributes are immutable")

    def __delattr__(self, *args, **kwargs):
        raise TypeError("SceneSource object attributes are immutable")

    def __eq__(self, other) -> bool:
        if not isinstance(other, SceneSource):
            return NotImplemented
        return (self.fpath, self.acquisition_date) == (
            other.fpath,
            other.acquisition_date,
        )

    def __hash__(self) -> int:
        return hash((self.fpath, self.acquisition_date))

    def __repr__(self) -> str:
        return f"SceneSource({self.fpath}, {self.acquisition_date})"


class Scene(Mapping):
    """
    Read-only collection of the spectral bands of one scene. Bands are
    indexed by their semantic name (e.g., 'red') or alias ('B3').

    :attrib fpath:
        file-path the scene was read from (None if constructed in memory)
    :attrib acquisition_date:
        acquisition date of the scene (optional)
    :attrib band_names:
        names of the bands in the scene in their original order
    :attrib geo_info:
        `GeoInfo` shared by all bands of the scene
    """

    def __init__(
        self,
        bands: Sequence[Band],
        fpath: Optional[Path] = None,
        acquisition_date: Optional[datetime.date] = None,
    ):
        """
        :param bands:
            bands of the scene. All bands must share shape and geo-localisation.
        :param fpath:
            optional source file of the scene
        :param acquisition_date:
            optional acquisition date of the scene
        """
        shapes = {band.shape for band in bands}
        geo_infos = {band.geo_info for band in bands}
        if len(shapes) > 1 or len(geo_infos) > 1:
            raise ValueError(
                "All bands of a scene must share pixel dimensions and "
                "geo-localisation"
            )
        self._bands: Dict[str, Band] = {band.band_name: band for band in bands}
        self._aliases: Dict[str, str] = {
            band.band_alias: band.band_name for band in bands if band.band_alias
        }
        self.fpath = fpath
        self.acquisition_date = acquisition_date

    def __getitem__(self, key: str) -> Band:
        if key in self._bands:
            return self._bands[key]
        if key in self._aliases:
            return self._bands[self._aliases[key]]
        raise BandNotFoundError(f"{key} not found in scene")

    def __contains__(self, key) -> bool:
        return key in self._bands or key in self._aliases

    def __iter__(self):
        return iter(self._bands)

    def __len__(self) -> int:
        return len(self._bands)

    def __repr__(self) -> str:
        return (
            f"landphen Scene\n--------------\nSource:    {self.fpath}\n"
            + f"Acquisition date:    {self.acquisition_date}\n"
            + f'Bands:    {", ".join(self.band_names)}'
        )

    @property
    def band_names(self) -> List[str]:
        """names of the bands in the scene"""
        return list(self._bands.keys())

    @property
    def geo_info(self) -> Union[GeoInfo, None]:
        """geo-localisation shared by all bands"""
        if len(self) == 0:
            return None
        return next(iter(self._bands.values())).geo_info

    @classmethod
    def from_multi_band_raster(
        cls,
        fpath_raster: Union[str, Path],
        acquisition_date: Optional[Union[datetime.date, str]] = None,
        band_names: Optional[List[str]] = None,
        **kwargs,
    ):
        """
        Loads all bands of a multi-band raster file into a new `Scene`.

        The file must contain exactly as many bands as `band_names` (by default
        the six bands blue, green, red, nir, swir_1, swir_2 in that order).
        Pixels flagged as nodata in the file are masked.

        :param fpath_raster:
            file-path to the raster file
        :param acquisition_date:
            optional acquisition date of the scene
        :param band_names:
            band names in the order of the bands in the file. Uses the band
            layout from the package settings by default.
        :param kwargs:
            optional key-word arguments passed to `~landphen.core.band.Band.from_rasterio`
        :returns:
            `Scene` instance with the bands loaded
        """
        if band_names is None:
            band_names = Settings.BAND_NAMES
        if acquisition_date is not None:
            acquisition_date = parse_date_label(
                acquisition_date, date_format=Settings.DATE_FORMAT
            )
        kwargs.setdefault("scale", Settings.SCALE_FACTOR)
        fpath_raster = Path(fpath_raster)

        try:
            with rio.open(fpath_raster, "r") as src:
                if src.count != len(band_names):
                    raise BandCountMismatch(
                        f"{fpath_raster} has {src.count} bands - expected "
                        f"{len(band_names)} ({', '.join(band_names)})"
                    )
                bands = [
                    Band.from_rasterio(
                        riods=src,
                        band_idx=band_idx,
                        band_name_dst=band_name,
                        band_alias=f"B{band_idx}",
                        **kwargs,
                    )
                    for band_idx, band_name in enumerate(band_names, start=1)
                ]
        except (RasterioError, OSError, ValueError) as e:
            raise SourceUnreadable(f"Could not read {fpath_raster}: {e}") from e

        logger.debug(f"Read {len(bands)} bands from {fpath_raster}")
        return cls(bands=bands, fpath=fpath_raster, acquisition_date=acquisition_date)

    @classmethod
    def from_scene_source(cls, scene_source: SceneSource, **kwargs):
        """
        Loads a scene from a `SceneSource`

        :param scene_source:
            file-path and acquisition date of the scene
        :param kwargs:
            optional key-word arguments passed to `Scene.from_multi_band_raster`
        :returns:
            `Scene` instance
        """
        return cls.from_multi_band_raster(
            fpath_raster=scene_source.fpath,
            acquisition_date=scene_source.acquisition_date,
            **kwargs,
        )

    def get_values(
        self, band_selection: Optional[List[str]] = None
    ) -> np.ma.MaskedArray:
        """
        Returns raster values of the selected bands stacked along the
        first axis.

        :param band_selection:
            optional selection of bands to return
        :returns:
            three-dimensional masked array (bands, rows, columns)
        """
        if band_selection is None:
            band_selection = self.band_names
        return np.ma.stack([self[x].values for x in band_selection], axis=0)

    def calc_si(
        self, si_name: str, band_mapping: Optional[Dict[str, str]] = None
    ) -> np.ma.MaskedArray:
        """
        Calculates a spectral index based on the band names

        :param si_name:
            name of the spectral index to calculate (e.g., 'NDVI')
        :param band_mapping:
            optional mapping of color names to band names
        :returns:
            ``np.ma.MaskedArray`` with spectral index values
        """
        return SpectralIndices(band_mapping).calc_si(si_name, self)


def load_scene(
    scene_ref: Union[str, Path, int, SceneSource],
    scene_sources: Optional[Sequence[Union[str, Path, SceneSource]]] = None,
    **kwargs: Any,
) -> Scene:
    """
    Loads a scene from a scene reference.

    :param scene_ref:
        file-path, `SceneSource` or index into `scene_sources`
    :param scene_sources:
        ordered list of scene sources. Required if `scene_ref` is an index.
    :param kwargs:
        optional key-word arguments passed to `Scene.from_multi_band_raster`
    :returns:
        `Scene` with six labeled bands
    """
    if isinstance(scene_ref, int) and not isinstance(scene_ref, bool):
        if scene_sources is None:
            raise ValueError("scene_sources must be provided when passing an index")
        if not -len(scene_sources) <= scene_ref < len(scene_sources):
            raise IndexError(
                f"Scene index {scene_ref} is out of range for "
                f"{len(scene_sources)} scene sources"
            )
        scene_ref = scene_sources[scene_ref]

    if isinstance(scene_ref, SceneSource):
        return Scene.from_scene_source(scene_ref, **kwargs)
    if isinstance(scene_ref, (str, Path)):
        return Scene.from_multi_band_raster(fpath_raster=scene_ref, **kwargs)
    raise TypeError(
        f"Expected a file-path, SceneSource or index - got {type(scene_ref)} instead"
    )
