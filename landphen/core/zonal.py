"""
Zonal statistics of NDVI stacks.

The spatial mean NDVI of every region (polygon) is computed for every layer of a
`~landphen.core.ndvi_stack.NDVIStack`. The result is a wide `ZonalTable` with one
row per region and one column per acquisition date. Region attributes (most
importantly the vegetation type stored in `study_site`) are kept row-aligned with
the statistics.

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
import pandas as pd

from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from landphen.config import get_settings
from landphen.core.ndvi_stack import NDVIStack
from landphen.utils.exceptions import InputError, SourceUnreadable

Settings = get_settings()
logger = Settings.logger

allowed_geometry_types = ["Polygon", "MultiPolygon"]


def read_regions(
    fpath: Union[str, Path], label_column: Optional[str] = None
) -> gpd.GeoDataFrame:
    """
    Reads study regions from a vector file understood by ``geopandas``.

    :param fpath:
        file-path to the vector file
    :param label_column:
        attribute holding the vegetation type of the regions. Defaults to
        `Settings.LABEL_COLUMN` (`study_site`).
    :returns:
        ``GeoDataFrame`` with the regions
    """
    if label_column is None:
        label_column = Settings.LABEL_COLUMN
    fpath = Path(fpath)
    if not fpath.exists():
        raise SourceUnreadable(f"Region file {fpath} does not exist")
    try:
        gdf = gpd.read_file(fpath)
    except (OSError, RuntimeError, ValueError) as e:
        raise SourceUnreadable(f"Could not read regions from {fpath}: {e}") from e
    if label_column not in gdf.columns:
        raise InputError(f'Region file {fpath} has no attribute "{label_column}"')
    logger.info(f"Read {gdf.shape[0]} regions from {fpath}")
    return gdf


def check_regions(regions: gpd.GeoDataFrame, label_column: str) -> None:
    """
    Asserts that regions carry a unique label attribute, a spatial reference
    system and (Multi)Polygon geometries only.
    """
    if not isinstance(regions, gpd.GeoDataFrame):
        raise TypeError(f"Expected a GeoDataFrame - got {type(regions)} instead")
    if label_column not in regions.columns:
        raise InputError(f'Regions have no attribute "{label_column}"')
    if regions.empty:
        return
    duplicated = regions[label_column][regions[label_column].duplicated()].unique()
    if len(duplicated) > 0:
        raise InputError(
            f"Region labels in \"{label_column}\" must be unique - "
            f"found duplicates {list(duplicated)}"
        )
    if regions.crs is None:
        raise ValueError(
            "Cannot handle regions without spatial coordinate reference system"
        )
    geom_types = set(regions.geometry.geom_type.unique())
    if not geom_types.issubset(allowed_geometry_types):
        raise InputError(
            f"Regions must be of type {allowed_geometry_types} - got {geom_types}"
        )


class ZonalTable(object):
    """
    Wide table of zonal statistics with one row per region and one column
    per date label.

    :attrib regions:
        ``DataFrame`` with the attributes (without geometry) of the regions
    :attrib date_labels:
        column labels, one per NDVI layer
    :attrib values:
        float array of shape (regions, dates). Missing values are NaN.
    :attrib label_column:
        name of the attribute in `regions` holding the region label
    """

    def __init__(
        self,
        regions: pd.DataFrame,
        date_labels: Sequence[Any],
        values: np.ndarray,
        label_column: Optional[str] = None,
    ):
        if label_column is None:
            label_column = Settings.LABEL_COLUMN
        values = np.asarray(values, dtype="float64")
        if values.shape != (len(regions), len(date_labels)):
            raise ValueError(
                f"Expected values of shape {(len(regions), len(date_labels))} "
                f"- got {values.shape}"
            )
        if label_column not in regions.columns:
            raise InputError(f'Regions have no attribute "{label_column}"')
        self.regions = regions.reset_index(drop=True)
        self.date_labels = list(date_labels)
        self.values = values
        self.label_column = label_column

    def __repr__(self) -> str:
        return (
            f"landphen ZonalTable\n-------------------\n# Regions:    {self.n_regions}"
            + f"\n# Dates:    {self.n_dates}"
        )

    @property
    def n_regions(self) -> int:
        return self.values.shape[0]

    @property
    def n_dates(self) -> int:
        return self.values.shape[1]

    @property
    def labels(self) -> List[Any]:
        """region labels (vegetation types) in row order"""
        return self.regions[self.label_column].tolist()

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        date_columns: Sequence[Any],
        label_column: Optional[str] = None,
    ):
        """
        Creates a `ZonalTable` from a wide ``DataFrame``.

        :param df:
            wide table with one row per region
        :param date_columns:
            columns holding the statistics (one per date)
        :param label_column:
            column holding the region label
        :returns:
            `ZonalTable` instance
        """
        missing = [x for x in date_columns if x not in df.columns]
        if len(missing) > 0:
            raise InputError(f"Columns {missing} not found in DataFrame")
        attribute_columns = [x for x in df.columns if x not in date_columns]
        if isinstance(df, gpd.GeoDataFrame):
            attribute_columns.remove(df.geometry.name)
        return cls(
            regions=pd.DataFrame(df[attribute_columns]),
            date_labels=date_columns,
            values=df[list(date_columns)].to_numpy(dtype="float64"),
            label_column=label_column,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """
        Returns the wide ``DataFrame`` (region attributes followed by one
        column per date label)
        """
        stats = pd.DataFrame(self.values, columns=self.date_labels)
        return pd.concat([self.regions, stats], axis=1)


def zonal_means(
    stack: NDVIStack,
    regions: gpd.GeoDataFrame,
    label_column: Optional[str] = None,
) -> ZonalTable:
    """
    Computes the mean NDVI of every region for every layer in the stack.

    Masked (missing) pixels are ignored. Regions without any valid pixel,
    including regions outside the extent of the stack, get NaN. Regions
    are aggregated independently, overlapping pixels count for every region
    they fall into.

    :param stack:
        NDVIStack with one layer per acquisition date
    :param regions:
        ``GeoDataFrame`` with (Multi)Polygon geometries and a label attribute.
        Reprojected into the spatial reference system of the stack if required.
    :param label_column:
        attribute holding the vegetation type of the regions. Defaults to
        `Settings.LABEL_COLUMN` (`study_site`).
    :returns:
        `ZonalTable` with one row per region and one column per date
    """
    if label_column is None:
        label_column = Settings.LABEL_COLUMN
    check_regions(regions, label_column)

    values = np.full((regions.shape[0], len(stack)), np.nan, dtype="float64")
    if not regions.empty:
        for idx, (acquisition_date, band) in enumerate(stack):
            stats = band.reduce(by=regions, method=["mean"])
            values[:, idx] = [x["mean"] for x in stats]
            logger.info(
                f"Calculated mean NDVI of {len(stats)} regions for {acquisition_date}"
            )

    attributes = pd.DataFrame(regions.drop(columns=regions.geometry.name))
    return ZonalTable(
        regions=attributes,
        date_labels=stack.date_labels,
        values=values,
        label_column=label_column,
    )
