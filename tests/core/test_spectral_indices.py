"""
Tests for the NDVI band arithmetic
"""

import numpy as np
import pytest

from landphen.core.spectral_indices import ndvi, SpectralIndices
from landphen.utils.exceptions import ShapeMismatch


@pytest.mark.parametrize('seed', [1, 42, 2018])
def test_ndvi_value_range(seed):
    """NDVI of non-negative reflectance is bound to [-1, 1]"""
    rng = np.random.default_rng(seed)
    nir = rng.uniform(0.01, 100, size=(50, 40))
    red = rng.uniform(0.01, 100, size=(50, 40))

    res = ndvi(nir, red)
    assert isinstance(res, np.ma.MaskedArray), 'expected a masked array'
    assert res.shape == nir.shape, 'shape of output must match the input'
    assert res.mask.sum() == 0, 'no pixel should be masked'
    assert res.min() >= -1 and res.max() <= 1, 'implausible NDVI values encountered'
    assert np.allclose(res.data, (nir - red) / (nir + red)), 'wrong result'


def test_ndvi_known_values():
    nir = np.array([[60, 80], [25, 10]], dtype='uint16')
    red = np.array([[20, 20], [25, 30]], dtype='uint16')
    res = ndvi(nir, red)
    assert res.dtype == np.float64, 'NDVI must be float'
    expected = np.array([[0.5, 0.6], [0., -0.5]])
    assert np.allclose(res.data, expected), 'wrong NDVI values'


def test_ndvi_zero_denominator():
    """pixels with nir + red == 0 are missing, not zero or infinity"""
    nir = np.array([[0., 50.], [0., 1.]])
    red = np.array([[0., 50.], [1., 0.]])
    res = ndvi(nir, red)

    assert res.mask[0, 0], 'zero-sum pixel must be masked'
    assert np.isnan(res.data[0, 0]), 'data behind the mask must be NaN'
    assert not res.mask[0, 1] and res[0, 1] == 0., 'NDVI of equal bands is zero'
    assert res[1, 0] == -1. and res[1, 1] == 1., 'wrong NDVI at the value range limits'
    # masked pixels never count towards statistics
    assert res.count() == 3, 'wrong number of valid pixels'
    assert np.isnan(res.filled(np.nan)[0, 0]), 'filling must not yield a number'


def test_ndvi_propagates_missing_input():
    nir = np.ma.masked_array(
        data=[[50., 50.], [50., np.nan]],
        mask=[[True, False], [False, False]]
    )
    red = np.array([[10., 10.], [10., 10.]])
    res = ndvi(nir, red)
    assert res.mask.tolist() == [[True, False], [False, True]], \
        'masked and NaN inputs must be missing in the output'
    assert np.isclose(res[0, 1], 40. / 60.), 'wrong NDVI value'


def test_ndvi_is_deterministic():
    nir = np.array([[0., 3.], [5., 7.]])
    red = np.array([[0., 1.], [5., 2.]])
    first, second = ndvi(nir, red), ndvi(nir, red)
    assert (first.mask == second.mask).all(), 'mask must be reproducible'
    assert np.allclose(first.filled(-99), second.filled(-99)), 'values must be reproducible'


def test_ndvi_shape_mismatch():
    with pytest.raises(ShapeMismatch):
        ndvi(np.zeros((3, 3)), np.zeros((3, 4)))


def test_si_list():
    si_list = SpectralIndices().get_si_list()
    assert si_list == ['NDVI'], 'expected to find the NDVI only'

    with pytest.raises(NotImplementedError):
        SpectralIndices().calc_si('EVI', None)
