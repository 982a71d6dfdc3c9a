"""
Constants describing the input scenes and the output tables.

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

# band order of the input scenes as delivered by the data provider
BAND_NAMES = ("blue", "green", "red", "nir", "swir_1", "swir_2")

# reflectance factors were multiplied by 100 by the data provider
SCALE_FACTOR = 0.01

LABEL_COLUMN = "study_site"
DATE_COLUMN = "date"
NDVI_COLUMN = "NDVI"

DATE_FORMAT = "%Y-%m-%d"
