"""
Script to derive the NDVI time series of vegetation communities (study sites)
from a series of 6-band Landsat scenes.

The scenes must be listed in the same order as their acquisition dates. The
resulting tidy table (study_site, date, NDVI) is written to a csv file which
can be used for plotting the phenology of the vegetation communities.
"""

from pathlib import Path
from typing import List

from landphen.config import get_settings
from landphen.pipeline import ndvi_timeseries

Settings = get_settings()
logger = Settings.logger


def run_example(
    scene_dir: Path,
    acquisition_dates: List[str],
    fpath_regions: Path,
    output_dir: Path
) -> None:
    """
    Calculate the NDVI time series of the study sites and save it as csv.

    :param scene_dir:
        directory with the scene files (one GeoTiff per acquisition date)
    :param acquisition_dates:
        acquisition dates of the scenes in the (alphabetical) order of the
        scene files
    :param fpath_regions:
        vector file with the study sites
    :param output_dir:
        directory where to save the csv file to
    """
    # the order of the files must match the order of the dates
    scene_files = sorted(scene_dir.glob('*.tif'))

    df = ndvi_timeseries(
        scene_files=scene_files,
        acquisition_dates=acquisition_dates,
        regions=fpath_regions
    )

    output_dir.mkdir(exist_ok=True, parents=True)
    fpath_csv = output_dir.joinpath('ndvi_timeseries.csv')
    df.to_csv(fpath_csv, index=False)
    logger.info(f'Wrote NDVI time series to {fpath_csv}')


if __name__ == '__main__':

    import os
    cwd = Path(__file__).parents[1]
    os.chdir(cwd)

    # -------------------------- Paths -------------------------------------
    scene_dir = cwd.joinpath('data/scenes')
    fpath_regions = cwd.joinpath('data/study_sites/study_sites.shp')
    output_dir = cwd.joinpath('data/output')

    # ------------------------- Acquisition Dates --------------------------
    # in the same order as the scene files in `scene_dir`
    acquisition_dates: List[str] = [
        '2018-06-12',
        '2018-08-15',
        '2018-10-18',
        '2019-01-06',
        '2019-03-11',
        '2019-05-14',
        '2019-07-01',
        '2019-09-19'
    ]

    run_example(scene_dir, acquisition_dates, fpath_regions, output_dir)
