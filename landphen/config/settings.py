"""
Global *landphen* settings defining the band layout of the input scenes, the
provider scale factor, naming defaults of the output tables and the settings
of the package-wide `logger` object (console and optional file output).

The ``Settings`` class uses ``pydantic``. This means all attributes of the class can
be **overwritten** using environmental variables or a `.env` file.

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

import logging

from datetime import datetime
from functools import lru_cache
from os.path import join
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List

from landphen.utils.constants import BAND_NAMES, DATE_FORMAT, LABEL_COLUMN, SCALE_FACTOR


class Settings(BaseSettings):
    """
    The landphen setting class. Allows to modify default
    settings and behavior of the package using a .env file
    or environmental variables
    """

    # band layout of the input scenes (order matters!)
    BAND_NAMES: List[str] = list(BAND_NAMES)
    # pixel values are delivered multiplied by 100
    SCALE_FACTOR: float = SCALE_FACTOR

    # name of the region attribute carrying the vegetation type
    LABEL_COLUMN: str = LABEL_COLUMN
    # textual format of the acquisition date labels
    DATE_FORMAT: str = DATE_FORMAT

    # number of threads used for loading scenes (1 means sequential)
    MAX_WORKERS: int = 1

    # define logger
    CURRENT_TIME: str = datetime.now().strftime("%Y%m%d-%H%M%S")
    LOGGER_NAME: str = "landphen"
    LOG_FORMAT: str = "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    LOG_DIR: str = str(Path.home())
    LOG_FILE: str = join(LOG_DIR, f"{CURRENT_TIME}_{LOGGER_NAME}.log")
    LOG_TO_FILE: bool = False
    LOGGING_LEVEL: int = logging.INFO

    # logger
    logger: logging.Logger = logging.getLogger(LOGGER_NAME)

    def get_logger(self):
        """
        returns a logger object with stream and (optional) file handler
        """
        self.logger.setLevel(self.LOGGING_LEVEL)
        formatter: logging.Formatter = logging.Formatter(self.LOG_FORMAT)
        # create console handler
        ch: logging.StreamHandler = logging.StreamHandler()
        ch.setLevel(self.LOGGING_LEVEL)
        ch.setFormatter(formatter)
        self.logger.addHandler(ch)
        # file handler is only created on request
        if self.LOG_TO_FILE:
            fh: logging.FileHandler = logging.FileHandler(self.LOG_FILE)
            fh.setLevel(self.LOGGING_LEVEL)
            fh.setFormatter(formatter)
            self.logger.addHandler(fh)


@lru_cache()
def get_settings():
    """
    loads package settings using ``last-recently-used`` cache
    """
    s = Settings()
    s.get_logger()
    return s
