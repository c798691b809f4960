"""
Infrastructure layer: canopy height model raster access.
"""
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import rasterio
from rasterio.windows import Window, from_bounds
from rasterio.windows import bounds as window_bounds

from woodyveg.domain.exceptions import InvalidCRSError
from woodyveg.domain.models import SpatialExtent

logger = logging.getLogger(__name__)


@dataclass
class CroppedRaster:
    """A window of a raster band with its geographic bounds."""
    data: np.ma.MaskedArray
    xmin: float
    xmax: float
    ymin: float
    ymax: float
    crs: str

    @property
    def plot_extent(self) -> tuple[float, float, float, float]:
        """Bounds in the (left, right, bottom, top) order matplotlib expects."""
        return (self.xmin, self.xmax, self.ymin, self.ymax)


def _crs_string(dataset) -> str:
    if dataset.crs is None:
        raise InvalidCRSError(f"Raster {dataset.name} has no coordinate reference system")
    return dataset.crs.to_string()


def read_raster_extent(path: Union[str, Path]) -> SpatialExtent:
    """
    Read the bounding box and CRS of a raster.

    Args:
        path: Path to the raster (e.g. CHM GeoTIFF)

    Returns:
        SpatialExtent of the raster

    Raises:
        InvalidCRSError: If the raster has no CRS
    """
    with rasterio.open(path) as src:
        bounds = src.bounds
        crs = _crs_string(src)

    extent = SpatialExtent(
        xmin=bounds.left,
        xmax=bounds.right,
        ymin=bounds.bottom,
        ymax=bounds.top,
        crs=crs,
    )
    logger.info(f"Raster extent x=[{extent.xmin}, {extent.xmax}], "
                f"y=[{extent.ymin}, {extent.ymax}] in {crs}")
    return extent


def crop_raster(path: Union[str, Path], extent: SpatialExtent, band: int = 1) -> CroppedRaster:
    """
    Read the part of a raster band covered by an extent.

    The window is snapped outward to whole pixels and clipped to the raster.

    Args:
        path: Path to the raster
        extent: Area to read, in the raster's CRS
        band: Band index (1-based)

    Returns:
        CroppedRaster with nodata cells masked

    Raises:
        rasterio.errors.WindowError: If the extent does not overlap the raster
    """
    with rasterio.open(path) as src:
        window = from_bounds(
            extent.xmin, extent.ymin, extent.xmax, extent.ymax, transform=src.transform
        )
        col_off = math.floor(window.col_off)
        row_off = math.floor(window.row_off)
        col_end = math.ceil(window.col_off + window.width)
        row_end = math.ceil(window.row_off + window.height)
        window = Window(col_off, row_off, col_end - col_off, row_end - row_off)
        window = window.intersection(Window(0, 0, src.width, src.height))

        data = src.read(band, window=window, masked=True)
        left, bottom, right, top = window_bounds(window, src.transform)
        crs = _crs_string(src)

    logger.debug(f"Cropped raster to {data.shape[1]}x{data.shape[0]} pixels")
    return CroppedRaster(data=data, xmin=left, xmax=right, ymin=bottom, ymax=top, crs=crs)
