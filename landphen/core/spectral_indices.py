"""
This module contains the band arithmetic for deriving spectral indices from
scenes. The formula are generic by using color names. Thus, they can be applied
to any scene as long as the bands carry the expected names.

Undefined ratios (zero denominator) and no-data pixels are returned as *masked*
pixels of a `~numpy.ma.MaskedArray` and never as zero or infinity.

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

import numpy as np

from typing import Dict, List, Optional, Union

from landphen.config import get_settings
from landphen.utils.exceptions import ShapeMismatch

Settings = get_settings()


def _as_float_masked(values: Union[np.ndarray, np.ma.MaskedArray]) -> np.ma.MaskedArray:
    """casts to float64 and masks NaN and inf"""
    return np.ma.masked_invalid(np.ma.asarray(values).astype("float64"))


def ndvi(
    nir: Union[np.ndarray, np.ma.MaskedArray],
    red: Union[np.ndarray, np.ma.MaskedArray],
) -> np.ma.MaskedArray:
    """
    Calculates the Normalized Difference Vegetation Index
    (NDVI) using the red and the near-infrared (NIR) channel:

    .. math::

        NDVI = (NIR - Red) / (NIR + Red)

    Pixels where ``nir + red == 0`` or where one of the inputs is missing
    are masked. The data behind masked pixels is NaN.

    :param nir:
        reflectance in the near-infrared channel
    :param red:
        reflectance in the red channel
    :returns:
        NDVI values as masked float64 array with the shape of the inputs
    """
    if np.shape(nir) != np.shape(red):
        raise ShapeMismatch(
            f"nir and red must have the same shape - got {np.shape(nir)} "
            f"and {np.shape(red)}"
        )
    nir = _as_float_masked(nir)
    red = _as_float_masked(red)

    # data behind masked pixels may hold anything, including inf
    with np.errstate(invalid="ignore", over="ignore"):
        numerator = nir.data - red.data
        denominator = nir.data + red.data
    undefined = (
        np.ma.getmaskarray(nir) | np.ma.getmaskarray(red) | (denominator == 0)
    )
    result = np.full(denominator.shape, np.nan, dtype="float64")
    # division is only carried out where the ratio is defined
    np.divide(numerator, denominator, out=result, where=~undefined)
    return np.ma.masked_array(data=result, mask=undefined)


class SpectralIndices(object):
    """generic spectral indices"""

    def __init__(self, band_mapping: Optional[Dict[str, str]] = None):
        """
        Class constructor. To override the default
        bands pass custom band mappings as a dictionary:

        Example
        -------
        To use a band named `nir_2` instead of `nir`:

        .. highlight:: python
        .. code-block:: python

            band_mapping = {'nir': 'nir_2'}
            spectral_indices = SpectralIndices(band_mapping)

        :param band_mapping:
            optional band mapping to override default band
            setting for SI calculation (see example above)
        """
        if band_mapping is None:
            band_mapping = {}
        # red and nir are the third and fourth band of the fixed band layout
        self.red = band_mapping.get("red", Settings.BAND_NAMES[2])
        self.nir = band_mapping.get("nir", Settings.BAND_NAMES[3])

    def get_si_list(self) -> List[str]:
        """
        Returns a list of implemented Spectral Indices (SIs)

        :returns:
            list of SIs currently implemented
        """
        return [
            x
            for x in dir(self)
            if not x.startswith("_") and not x.islower()
        ]

    def calc_si(self, si: str, scene) -> np.ma.MaskedArray:
        """
        Calculates the selected spectral index (SI) for
        spectral band data derived from a `~landphen.core.scene.Scene`.

        :param si:
            name of the selected spectral index (e.g., NDVI). Raises
            an error if the index is not implemented.
        :param scene:
            `~landphen.core.scene.Scene` with spectral bands.
        :returns:
            2d ``numpy.ma.MaskedArray`` with SI values
        """
        if not hasattr(self, si.upper()):
            raise NotImplementedError(
                f'SI {si} not found.\nSee `SpectralIndices()' +
                '.get_si_list()` for a list of currently implemented SIs.')
        si_fun = getattr(self, si.upper())
        return si_fun(scene)

    def NDVI(self, scene) -> np.ma.MaskedArray:
        """
        Calculates the NDVI of a scene

        :param scene:
            reflectance in the 'red' and 'nir' channel
        :returns:
            NDVI values
        """
        return ndvi(nir=scene[self.nir].values, red=scene[self.red].values)
