"""
Tests for building NDVI stacks from a series of scenes
"""

import numpy as np
import pytest
import xarray as xr

from datetime import date
from rasterio import Affine

from landphen.config import get_settings
from landphen.core.band import Band
from landphen.core.ndvi_stack import build_ndvi_stack, NDVIStack, pair_scenes_with_dates
from landphen.core.scene import SceneSource
from landphen.utils.exceptions import (
    BatchNDVIError,
    DateLabelUnparseable,
    LabelCountMismatch,
    SourceUnreadable,
)


@pytest.fixture()
def get_scene_series(write_scene):
    """writes `n` scenes where scene i has a constant NDVI of i / 10"""
    def _get_scene_series(n: int):
        fpaths, dates = [], []
        for i in range(n):
            red = np.full((4, 4), 10. - i)
            nir = np.full((4, 4), 10. + i)
            fpaths.append(write_scene(f'scene_{i}.tif', nir=nir, red=red))
            dates.append(date(2018, 1 + i, 1))
        return fpaths, dates
    return _get_scene_series


@pytest.mark.parametrize('n', [0, 1, 3, 8])
def test_build_ndvi_stack(get_scene_series, n):
    """N scenes yield N layers in input order"""
    fpaths, dates = get_scene_series(n)
    stack = build_ndvi_stack(fpaths, dates)

    assert len(stack) == n, 'wrong number of layers'
    assert stack.dates == dates, 'layer order must follow the input order'
    assert stack.empty == (n == 0)
    for idx, (acquisition_date, layer) in enumerate(stack):
        assert acquisition_date == dates[idx], 'wrong date'
        assert isinstance(layer, Band), 'layers must be Bands'
        assert np.allclose(layer.values, idx / 10.), 'wrong NDVI values'


def test_build_ndvi_stack_reversed_order(get_scene_series):
    fpaths, dates = get_scene_series(3)
    stack = build_ndvi_stack(fpaths[::-1], dates[::-1])
    assert stack.dates == dates[::-1], 'stack must not re-order the scenes'
    assert np.allclose(stack[dates[0]].values, 0.), 'wrong layer for date'
    assert np.allclose(stack['2018-03-01'].values, 0.2), 'wrong layer for label'
    assert stack.date_labels == ['2018-03-01', '2018-02-01', '2018-01-01']


def test_build_ndvi_stack_parallel(get_scene_series):
    fpaths, dates = get_scene_series(4)
    stack = build_ndvi_stack(fpaths, dates, max_workers=3)
    assert stack.dates == dates, 'parallel loading must preserve the order'
    for idx, (_, layer) in enumerate(stack):
        assert np.allclose(layer.values, idx / 10.), 'wrong NDVI values'


@pytest.mark.parametrize('bad_position', [0, 1, 2])
@pytest.mark.parametrize('max_workers', [1, 2])
def test_build_ndvi_stack_unreadable_scene(get_scene_series, tmppath, bad_position, max_workers):
    """a single unreadable scene aborts the whole batch"""
    fpaths, dates = get_scene_series(3)
    bad_scene = tmppath.joinpath('missing.tif')
    fpaths[bad_position] = bad_scene

    with pytest.raises(BatchNDVIError) as excinfo:
        build_ndvi_stack(fpaths, dates, max_workers=max_workers)
    assert excinfo.value.scene_ref == bad_scene, 'failing scene must be named'
    assert 'missing.tif' in str(excinfo.value), 'failing scene must be named'
    assert isinstance(excinfo.value.__cause__, SourceUnreadable), 'wrong cause'


def test_build_ndvi_stack_band_count_mismatch(get_scene_series, write_scene):
    fpaths, dates = get_scene_series(2)
    fpaths[1] = write_scene('five_bands.tif', nir=np.ones((4, 4)), red=np.ones((4, 4)), band_count=5)
    with pytest.raises(BatchNDVIError):
        build_ndvi_stack(fpaths, dates)


def test_build_ndvi_stack_label_count_mismatch(get_scene_series):
    fpaths, dates = get_scene_series(3)
    with pytest.raises(LabelCountMismatch):
        build_ndvi_stack(fpaths, dates[:2])
    with pytest.raises(LabelCountMismatch):
        build_ndvi_stack(fpaths[:2], dates)


def test_build_ndvi_stack_invalid_dates(get_scene_series):
    fpaths, dates = get_scene_series(2)
    with pytest.raises(DateLabelUnparseable):
        build_ndvi_stack(fpaths, ['2018-01-01', 'invalid-date'])
    # duplicate dates are not permitted
    with pytest.raises(BatchNDVIError):
        build_ndvi_stack(fpaths, [dates[0], dates[0]])


def test_pair_scenes_with_dates(get_scene_series):
    fpaths, dates = get_scene_series(2)
    pairs = pair_scenes_with_dates([1, 0], ['2019-07-01', '2018-06-12'], scene_sources=fpaths)
    assert pairs == [
        SceneSource(fpaths[1], date(2019, 7, 1)),
        SceneSource(fpaths[0], date(2018, 6, 12))
    ], 'wrong pairs'

    stack = build_ndvi_stack([1, 0], ['2019-07-01', '2018-06-12'], scene_sources=fpaths)
    assert np.allclose(stack['2019-07-01'].values, 0.1), 'index lookup failed'

    with pytest.raises(BatchNDVIError):
        pair_scenes_with_dates([5], ['2019-07-01'], scene_sources=fpaths)


def test_ndvi_stack_api(get_scene_series):
    fpaths, dates = get_scene_series(2)
    stack = NDVIStack.from_scene_sources(pair_scenes_with_dates(fpaths, dates))

    assert stack.shape == (4, 4), 'wrong shape'
    assert stack.crs.to_epsg() == 32611, 'wrong CRS'
    assert stack.transform == Affine(30., 0., 300000., 0., -30., 3800000.), 'wrong transform'
    assert date(2018, 1, 1) in stack and '2018-02-01' in stack
    assert '2018-03-01' not in stack and 'invalid-date' not in stack
    assert stack.get_values().shape == (2, 4, 4), 'wrong stack shape'

    xarr = stack.to_xarray()
    assert isinstance(xarr, xr.DataArray), 'expected a DataArray'
    assert xarr.dims == ('time', 'y', 'x'), 'wrong dimensions'
    assert xarr.shape == (2, 4, 4), 'wrong shape'

    with pytest.raises(KeyError):
        stack['2020-01-01']

    # layers must align spatially
    other = Band(
        band_name='NDVI',
        values=np.zeros((2, 2)),
        geo_info=stack.geo_info
    )
    with pytest.raises(ValueError):
        stack.add_layer(other, '2020-01-01')

    empty = NDVIStack()
    assert empty.empty and empty.geo_info is None and empty.dates == []
    with pytest.raises(ValueError):
        empty.get_values()


def test_build_ndvi_stack_custom_band_names(get_scene_series, monkeypatch):
    """red and nir are taken from the band layout in the settings"""
    settings = get_settings()
    monkeypatch.setattr(
        settings, 'BAND_NAMES', ['B', 'G', 'R', 'NIR', 'SWIR1', 'SWIR2']
    )
    fpaths, dates = get_scene_series(3)
    stack = build_ndvi_stack(fpaths, dates)
    assert len(stack) == 3, 'expected three layers'
    for idx, (_, band) in enumerate(stack):
        assert np.allclose(band.values, idx / 10.), 'wrong NDVI'
