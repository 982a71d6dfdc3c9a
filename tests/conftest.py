'''
Global pytest fixtures
'''

import numpy as np
import geopandas as gpd
import pytest
import rasterio as rio

from pathlib import Path
from rasterio import Affine
from shapely.geometry import box
from typing import Dict, Optional

from landphen.core.band import GeoInfo

# synthetic test grid: 4 x 4 pixels with 30 m spatial resolution in UTM zone 11N
EPSG = 32611
ULX, ULY = 300000., 3800000.
PIXRES = 30.
NROWS, NCOLS = 4, 4


@pytest.fixture
def tmppath(tmpdir):
    '''
    Fixture to make sure that test function receive proper
    Posix or Windows path instead of 'localpath'
    '''
    return Path(tmpdir)


@pytest.fixture()
def get_geo_info():
    """returns the GeoInfo of the synthetic test grid"""
    def _get_geo_info():
        return GeoInfo(epsg=EPSG, ulx=ULX, uly=ULY, pixres_x=PIXRES, pixres_y=-PIXRES)
    return _get_geo_info


@pytest.fixture()
def pixel_box():
    """
    Returns a polygon exactly covering a block of pixels of the test grid
    (row and column stops are inclusive)
    """
    def _pixel_box(row_start: int, row_stop: int, col_start: int, col_stop: int):
        return box(
            ULX + col_start * PIXRES,
            ULY - (row_stop + 1) * PIXRES,
            ULX + (col_stop + 1) * PIXRES,
            ULY - row_start * PIXRES
        )
    return _pixel_box


@pytest.fixture()
def write_scene(tmppath):
    """
    Writes a synthetic multi-band GeoTiff into a temporary directory.
    Blue, green and the shortwave-infrared bands are filled with constant
    values, red and nir are taken from the arrays passed.
    """
    def _write_scene(
        fname: str,
        nir: np.ndarray,
        red: np.ndarray,
        band_count: Optional[int] = 6,
        nodata: Optional[float] = None,
        dtype: Optional[str] = 'float32'
    ) -> Path:
        fpath = tmppath.joinpath(fname)
        data = np.full((max(6, band_count), NROWS, NCOLS), 10, dtype=dtype)
        data[2] = red
        data[3] = nir
        data = data[:band_count]
        with rio.open(
            fpath,
            'w',
            driver='GTiff',
            height=NROWS,
            width=NCOLS,
            count=band_count,
            dtype=dtype,
            crs=f'EPSG:{EPSG}',
            transform=Affine(PIXRES, 0, ULX, 0, -PIXRES, ULY),
            nodata=nodata
        ) as dst:
            dst.write(data)
        return fpath
    return _write_scene


@pytest.fixture()
def get_regions(pixel_box):
    """
    Returns two non-overlapping regions: riparian (upper left 2 x 2 pixels)
    and chaparral (lower right 2 x 2 pixels)
    """
    def _get_regions(extra: Optional[Dict[str, object]] = None) -> gpd.GeoDataFrame:
        sites = {
            'riparian': pixel_box(0, 1, 0, 1),
            'chaparral': pixel_box(2, 3, 2, 3)
        }
        if extra is not None:
            sites.update(extra)
        return gpd.GeoDataFrame(
            {'fid': list(range(len(sites))), 'study_site': list(sites.keys())},
            geometry=list(sites.values()),
            crs=EPSG
        )
    return _get_regions


@pytest.fixture()
def get_two_scenes(write_scene):
    """
    Writes two scenes with known NDVI values in the two test regions.

    2018-06-12:
        riparian: NDVI 0.5 (upper row) and 0.6 (lower row) -> mean 0.55
        chaparral: NDVI 0.2 everywhere -> mean 0.2
    2019-07-01:
        riparian: NDVI 0.8 everywhere -> mean 0.8
        chaparral: NDVI 0.4 (upper row) and 0.0 (lower row) -> mean 0.2
    """
    def _get_two_scenes():
        nir_1 = np.full((NROWS, NCOLS), 40.)
        red_1 = np.full((NROWS, NCOLS), 40.)
        nir_1[0, 0:2], red_1[0, 0:2] = 60., 20.
        nir_1[1, 0:2], red_1[1, 0:2] = 80., 20.
        nir_1[2:4, 2:4], red_1[2:4, 2:4] = 30., 20.

        nir_2 = np.full((NROWS, NCOLS), 40.)
        red_2 = np.full((NROWS, NCOLS), 40.)
        nir_2[0:2, 0:2], red_2[0:2, 0:2] = 90., 10.
        nir_2[2, 2:4], red_2[2, 2:4] = 35., 15.
        nir_2[3, 2:4], red_2[3, 2:4] = 25., 25.

        fpath_1 = write_scene('scene_20180612.tif', nir=nir_1, red=red_1)
        fpath_2 = write_scene('scene_20190701.tif', nir=nir_2, red=red_2)
        return [fpath_1, fpath_2], ['2018-06-12', '2019-07-01']
    return _get_two_scenes
