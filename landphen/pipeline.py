"""
End-to-end NDVI time series of vegetation communities:

scene files + acquisition dates -> NDVI stack -> mean NDVI per region and date
-> tidy table (`study_site`, `date`, `NDVI`)

.. highlight:: python
.. code-block:: python

    from landphen.pipeline import ndvi_timeseries

    df = ndvi_timeseries(
        scene_files=['scenes/20180612.tif', 'scenes/20190701.tif'],
        acquisition_dates=['2018-06-12', '2019-07-01'],
        regions='regions/study_sites.shp'
    )

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
import geopandas as gpd
import pandas as pd

from pathlib import Path
from typing import Optional, Sequence, Union

from landphen.config import get_settings
from landphen.core.ndvi_stack import build_ndvi_stack
from landphen.core.tidy import to_tidy_dataframe
from landphen.core.zonal import read_regions, zonal_means

Settings = get_settings()
logger = Settings.logger


def ndvi_timeseries(
    scene_files: Sequence[Union[str, Path]],
    acquisition_dates: Sequence[Union[datetime.date, str]],
    regions: Union[str, Path, gpd.GeoDataFrame],
    label_column: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> pd.DataFrame:
    """
    Derives the NDVI time series of study regions from a series of scenes.

    Any error aborts the run; no partial table is returned.

    :param scene_files:
        ordered list of 6-band scene files
    :param acquisition_dates:
        acquisition dates (`YYYY-MM-DD`) in the order of `scene_files`
    :param regions:
        file-path to a vector file or ``GeoDataFrame`` with the study regions
    :param label_column:
        attribute holding the vegetation type of the regions (`study_site`
        by default)
    :param max_workers:
        optional number of threads used to load the scenes
    :returns:
        tidy ``DataFrame`` with columns `study_site`, `date` and `NDVI`
    """
    if label_column is None:
        label_column = Settings.LABEL_COLUMN
    try:
        if not isinstance(regions, gpd.GeoDataFrame):
            regions = read_regions(regions, label_column=label_column)
        stack = build_ndvi_stack(
            scene_refs=scene_files,
            acquisition_dates=acquisition_dates,
            max_workers=max_workers,
        )
        logger.info(f"Built NDVI stack with {len(stack)} layers")
        table = zonal_means(stack, regions, label_column=label_column)
        df = to_tidy_dataframe(table)
    except Exception as e:
        logger.error(f"NDVI time series failed: {e}")
        raise
    return df
