"""
Reshaping of wide zonal tables into a tidy (long-form) time series with one
record per region and date.

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

from typing import Any, Dict, List, Optional

from landphen.config import get_settings
from landphen.core.zonal import ZonalTable
from landphen.utils.constants import DATE_COLUMN, LABEL_COLUMN, NDVI_COLUMN
from landphen.utils.exceptions import InputError
from landphen.utils.timestamps import parse_date_label

Settings = get_settings()
logger = Settings.logger


class TidyRecord(object):
    """
    Mean NDVI of one region at one date

    :attrib study_site:
        label (vegetation type) of the region
    :attrib date:
        acquisition date
    :attrib ndvi:
        mean NDVI or None if missing
    """

    def __init__(self, study_site: str, date: datetime.date, ndvi: Optional[float]):
        object.__setattr__(self, "study_site", study_site)
        object.__setattr__(self, "date", date)
        object.__setattr__(self, "ndvi", ndvi)

    def __setattr__(self, *args, **kwargs):
        raise TypeError("TidyRecord object attributes are immutable")

    def __delattr__(self, *args, **kwargs):
        raise TypeError("TidyRecord object attributes are immutable")

    def __eq__(self, other) -> bool:
        if not isinstance(other, TidyRecord):
            return NotImplemented
        return self.astuple() == other.astuple()

    def __hash__(self) -> int:
        return hash(self.astuple())

    def __repr__(self) -> str:
        return f"TidyRecord({self.study_site}, {self.date}, {self.ndvi})"

    @property
    def key(self) -> tuple:
        """(study_site, date) key of the record"""
        return self.study_site, self.date

    @property
    def is_missing(self) -> bool:
        return self.ndvi is None

    def astuple(self) -> tuple:
        return self.study_site, self.date, self.ndvi

    def to_dict(self) -> Dict[str, Any]:
        return {LABEL_COLUMN: self.study_site, DATE_COLUMN: self.date, NDVI_COLUMN: self.ndvi}


def to_tidy_records(table: ZonalTable) -> List[TidyRecord]:
    """
    Converts a wide `ZonalTable` into tidy records.

    Only the region label, the date and the NDVI value are kept. Every date
    label is parsed into a ``datetime.date`` before any record is created;
    an unparseable label raises `DateLabelUnparseable`.
    Region labels must be unique so that every record has a unique
    (study_site, date) key; duplicated labels raise `InputError`.

    :param table:
        `ZonalTable` with R regions and D date columns
    :returns:
        R x D `TidyRecord` objects grouped by region. Missing NDVI values
        are None.
    """
    labels = pd.Series(table.labels, dtype="object")
    if labels.duplicated().any():
        raise InputError(
            f"Region labels must be unique - found duplicates "
            f"{labels[labels.duplicated()].unique().tolist()}"
        )
    dates = [
        parse_date_label(x, date_format=Settings.DATE_FORMAT)
        for x in table.date_labels
    ]
    records = []
    for label, row in zip(table.labels, table.values):
        for acquisition_date, value in zip(dates, row):
            ndvi = None if np.isnan(value) else float(value)
            records.append(TidyRecord(study_site=label, date=acquisition_date, ndvi=ndvi))
    logger.info(
        f"Reshaped {table.n_regions} regions x {table.n_dates} dates into "
        f"{len(records)} records"
    )
    return records


def to_tidy_dataframe(table: ZonalTable) -> pd.DataFrame:
    """
    Converts a wide `ZonalTable` into a tidy ``DataFrame`` with the columns
    `study_site`, `date` and `NDVI`. Missing NDVI values are NaN.

    :param table:
        `ZonalTable` with R regions and D date columns
    :returns:
        ``DataFrame`` with R x D rows
    """
    records = to_tidy_records(table)
    df = pd.DataFrame(
        [x.to_dict() for x in records],
        columns=[LABEL_COLUMN, DATE_COLUMN, NDVI_COLUMN],
    )
    df[NDVI_COLUMN] = df[NDVI_COLUMN].astype("float64")
    return df
