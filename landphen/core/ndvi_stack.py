"""
An NDVIStack is an ordered collection of NDVI layers, one per scene, where each
layer is indexed by the acquisition date of its scene. The stack is built from an
explicit, ordered list of (scene file, acquisition date) pairs; the order of the
pairs is preserved.

Building a stack is all-or-nothing: if a single scene cannot be read or processed
a `~landphen.utils.exceptions.BatchNDVIError` is raised and no stack is returned.

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
import pandas as pd
import xarray as xr

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from rasterio import Affine
from rasterio.crs import CRS
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from landphen.config import get_settings
from landphen.core.band import Band, GeoInfo
from landphen.core.scene import Scene, SceneSource
from landphen.core.spectral_indices import SpectralIndices
from landphen.utils.constants import NDVI_COLUMN
from landphen.utils.exceptions import (
    BatchNDVIError,
    DateLabelUnparseable,
    LabelCountMismatch,
)
from landphen.utils.timestamps import format_date_label, parse_date_label

Settings = get_settings()
logger = Settings.logger


def pair_scenes_with_dates(
    scene_refs: Sequence[Union[str, Path, int]],
    acquisition_dates: Sequence[Union[datetime.date, str]],
    scene_sources: Optional[Sequence[Union[str, Path, SceneSource]]] = None,
) -> List[SceneSource]:
    """
    Combines scene references and externally known acquisition dates into
    an explicit, ordered list of `SceneSource` objects.

    :param scene_refs:
        ordered file-paths of the scenes or indices into `scene_sources`
    :param acquisition_dates:
        acquisition dates in the same order as `scene_refs`
    :param scene_sources:
        ordered list of scene files. Required if `scene_refs` contains indices.
    :returns:
        list of `SceneSource` objects in the order of `scene_refs`
    """
    if len(scene_refs) != len(acquisition_dates):
        raise LabelCountMismatch(
            f"Got {len(acquisition_dates)} acquisition dates for "
            f"{len(scene_refs)} scenes"
        )
    pairs = []
    for scene_ref, acquisition_date in zip(scene_refs, acquisition_dates):
        fpath = scene_ref
        if isinstance(scene_ref, int) and not isinstance(scene_ref, bool):
            try:
                fpath = scene_sources[scene_ref]
            except (IndexError, TypeError) as e:
                raise BatchNDVIError(
                    f"Cannot resolve scene index {scene_ref}: {e}", scene_ref=scene_ref
                ) from e
        if isinstance(fpath, SceneSource):
            fpath = fpath.fpath
        pairs.append(SceneSource(fpath=fpath, acquisition_date=acquisition_date))
    return pairs


class NDVIStack(object):
    """
    Ordered collection of NDVI layers (`~landphen.core.band.Band`) indexed by
    acquisition date. All layers share the same shape and geo-localisation.

    Iterating over a stack yields (date, layer) tuples in insertion order.
    """

    def __init__(self):
        self._layers: Dict[datetime.date, Band] = {}

    def __getitem__(self, key: Union[datetime.date, str]) -> Band:
        key = parse_date_label(key, date_format=Settings.DATE_FORMAT)
        try:
            return self._layers[key]
        except KeyError:
            raise KeyError(f"No NDVI layer for {key} in stack")

    def __contains__(self, key) -> bool:
        try:
            self.__getitem__(key)
        except (KeyError, DateLabelUnparseable):
            return False
        return True

    def __iter__(self):
        for k, v in self._layers.items():
            yield k, v

    def __len__(self) -> int:
        return len(self._layers)

    def __repr__(self) -> str:
        if self.empty:
            return "Empty landphen NDVIStack"
        return (
            f"landphen NDVIStack\n------------------\n"
            + f"# Layers:    {len(self)}\nDates:    {', '.join(self.date_labels)}"
        )

    @property
    def empty(self) -> bool:
        """stack has no layers"""
        return len(self) == 0

    @property
    def dates(self) -> List[datetime.date]:
        """acquisition dates of the layers in stack order"""
        return list(self._layers.keys())

    @property
    def date_labels(self) -> List[str]:
        """acquisition dates as textual labels"""
        return [
            format_date_label(x, date_format=Settings.DATE_FORMAT) for x in self.dates
        ]

    @property
    def geo_info(self) -> Union[GeoInfo, None]:
        """geo-localisation shared by all layers"""
        if self.empty:
            return None
        return next(iter(self._layers.values())).geo_info

    @property
    def crs(self) -> Union[CRS, None]:
        if self.empty:
            return None
        return next(iter(self._layers.values())).crs

    @property
    def shape(self) -> Union[Tuple[int, int], None]:
        if self.empty:
            return None
        return next(iter(self._layers.values())).shape

    @property
    def transform(self) -> Union[Affine, None]:
        """affine transformation shared by all layers"""
        if self.empty:
            return None
        return next(iter(self._layers.values())).transform

    def add_layer(self, layer: Band, acquisition_date: Union[datetime.date, str]) -> None:
        """
        Appends a NDVI layer to the stack.

        :param layer:
            NDVI layer
        :param acquisition_date:
            acquisition date of the scene the layer was derived from. Must
            be unique within the stack.
        """
        if not isinstance(layer, Band):
            raise TypeError("Only Band objects can be added")
        key = parse_date_label(acquisition_date, date_format=Settings.DATE_FORMAT)
        if key in self._layers:
            raise KeyError(f"Duplicate acquisition date {key} is not permitted")
        if not self.empty:
            if layer.shape != self.shape or layer.geo_info != self.geo_info:
                raise ValueError(
                    f"Layer of {key} does not align with the layers in the stack"
                )
        self._layers[key] = layer

    def get_values(self) -> np.ma.MaskedArray:
        """
        Returns NDVI values as three-dimensional masked array
        (dates, rows, columns)
        """
        if self.empty:
            raise ValueError("Cannot stack values of an empty NDVIStack")
        return np.ma.stack([band.values for _, band in self], axis=0)

    def to_xarray(self, **kwargs: Any) -> xr.DataArray:
        """
        Converts the stack into a single `xarray.DataArray` with dimensions
        `time`, `y` and `x`. Masked pixels are NaN.

        :param kwargs:
            key word arguments to pass to `~landphen.core.band.Band.to_xarray`
        :returns:
            NDVIStack as `xarray.DataArray`
        """
        xarray_list = []
        for acquisition_date, band in self:
            _xr = band.to_xarray(**kwargs)
            _xr = _xr.expand_dims(time=[pd.Timestamp(acquisition_date)])
            xarray_list.append(_xr)
        return xr.concat(xarray_list, dim="time")

    @staticmethod
    def _ndvi_layer(scene_source: SceneSource) -> Band:
        """
        Loads a scene and derives its NDVI layer. Any failure is re-raised as
        `BatchNDVIError` naming the scene.
        """
        try:
            scene = Scene.from_scene_source(scene_source)
            values = SpectralIndices().NDVI(scene)
            layer = Band(
                band_name=NDVI_COLUMN,
                values=values,
                geo_info=scene.geo_info,
                band_alias=format_date_label(
                    scene_source.acquisition_date, date_format=Settings.DATE_FORMAT
                ),
                nodata=np.nan,
            )
        except Exception as e:
            logger.error(f"NDVI calculation failed for {scene_source.fpath}: {e}")
            raise BatchNDVIError(
                f"NDVI calculation failed for scene {scene_source.fpath}: {e}",
                scene_ref=scene_source.fpath,
            ) from e
        logger.info(
            f"Calculated NDVI of {scene_source.fpath.name} "
            f"({scene_source.acquisition_date})"
        )
        return layer

    @classmethod
    def from_scene_sources(
        cls,
        scene_sources: Sequence[SceneSource],
        max_workers: Optional[int] = None,
    ):
        """
        Builds a NDVIStack from an ordered list of `SceneSource` objects.

        :param scene_sources:
            scene files and their acquisition dates. The order is preserved.
        :param max_workers:
            number of threads used to load the scenes. Defaults to
            `Settings.MAX_WORKERS`. 1 means sequential processing.
        :returns:
            NDVIStack with one layer per scene source
        """
        if max_workers is None:
            max_workers = Settings.MAX_WORKERS

        if max_workers > 1 and len(scene_sources) > 1:
            # map returns results in input order and re-raises the first failure
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                layers = list(executor.map(cls._ndvi_layer, scene_sources))
        else:
            layers = [cls._ndvi_layer(x) for x in scene_sources]

        stack = cls()
        for scene_source, layer in zip(scene_sources, layers):
            try:
                stack.add_layer(layer, scene_source.acquisition_date)
            except (KeyError, ValueError) as e:
                raise BatchNDVIError(
                    f"Cannot add NDVI of scene {scene_source.fpath}: {e}",
                    scene_ref=scene_source.fpath,
                ) from e
        return stack


def build_ndvi_stack(
    scene_refs: Sequence[Union[str, Path, int]],
    acquisition_dates: Sequence[Union[datetime.date, str]],
    scene_sources: Optional[Sequence[Union[str, Path, SceneSource]]] = None,
    max_workers: Optional[int] = None,
) -> NDVIStack:
    """
    Calculates the NDVI for every scene in an ordered sequence of scene
    references and stacks the layers by acquisition date.

    :param scene_refs:
        ordered file-paths of the scenes or indices into `scene_sources`
    :param acquisition_dates:
        acquisition dates in the same order as `scene_refs`. Must have the same
        length as `scene_refs`.
    :param scene_sources:
        ordered list of scene files (required if `scene_refs` holds indices)
    :param max_workers:
        optional number of threads used to load the scenes
    :returns:
        NDVIStack with one layer per scene reference in input order
    """
    pairs = pair_scenes_with_dates(
        scene_refs=scene_refs,
        acquisition_dates=acquisition_dates,
        scene_sources=scene_sources,
    )
    return NDVIStack.from_scene_sources(pairs, max_workers=max_workers)
