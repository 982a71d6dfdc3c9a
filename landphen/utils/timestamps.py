"""
Parsing and formatting of acquisition date labels.

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

from datetime import date, datetime
from typing import Any

from landphen.utils.constants import DATE_FORMAT
from landphen.utils.exceptions import DateLabelUnparseable


def parse_date_label(label: Any, date_format: str = DATE_FORMAT) -> date:
    """
    Converts a date label into a ``datetime.date``.

    Labels must either be structured dates (``datetime.date`` or
    ``datetime.datetime``) or strings in a fixed format. No attempt is
    made to infer the format of a string.

    >>> parse_date_label('2018-06-12')
    datetime.date(2018, 6, 12)

    :param label:
        date label to parse
    :param date_format:
        `strptime` compatible format of string labels (`%Y-%m-%d` by default)
    :returns:
        calendar date
    """
    # datetime is a subclass of date, hence it must be checked first
    if isinstance(label, datetime):
        return label.date()
    if isinstance(label, date):
        return label
    if not isinstance(label, str):
        raise DateLabelUnparseable(
            f"Cannot parse date label {label!r} of type {type(label).__name__}"
        )
    try:
        parsed = datetime.strptime(label, date_format).date()
    except ValueError as e:
        raise DateLabelUnparseable(
            f'Date label "{label}" does not match format "{date_format}"'
        ) from e
    # strptime tolerates missing zero-padding
    if parsed.strftime(date_format) != label:
        raise DateLabelUnparseable(
            f'Date label "{label}" does not match format "{date_format}"'
        )
    return parsed


def format_date_label(value: date, date_format: str = DATE_FORMAT) -> str:
    """returns the textual label of a calendar date"""
    return value.strftime(date_format)
