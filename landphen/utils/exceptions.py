"""
Collection of exceptions raised by landphen's modules

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


class ShapeMismatch(Exception):
    pass


class BandCountMismatch(Exception):
    pass


class SourceUnreadable(Exception):
    pass


class BatchNDVIError(Exception):
    """
    Raised when a single scene of a batch could not be processed.
    The reference of the failing scene is available as `scene_ref`.
    """

    def __init__(self, message: str, scene_ref=None):
        super().__init__(message)
        self.scene_ref = scene_ref


class LabelCountMismatch(Exception):
    pass


class DateLabelUnparseable(Exception):
    pass


class BandNotFoundError(Exception):
    pass


class InputError(Exception):
    pass
