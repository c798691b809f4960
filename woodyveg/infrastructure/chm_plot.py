"""
Infrastructure layer: plotting stem locations over the canopy height model.
"""
import logging
from pathlib import Path
from typing import Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from woodyveg.domain.models import StemPointSet
from woodyveg.infrastructure.raster_reader import CroppedRaster

logger = logging.getLogger(__name__)


def plot_stems_on_chm(
    raster: CroppedRaster,
    points: StemPointSet,
    path: Union[str, Path],
) -> Path:
    """
    Save a map of the cropped CHM with stem locations on top.

    Args:
        raster: Cropped canopy height model
        points: Stem points in the raster's CRS
        path: Destination image file

    Returns:
        Path of the written image
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 8))
    try:
        image = ax.imshow(raster.data, extent=raster.plot_extent, cmap="viridis")
        colorbar = fig.colorbar(image, ax=ax, shrink=0.75)
        colorbar.set_label("Height (m)")

        ax.scatter(
            [p.easting for p in points.points],
            [p.northing for p in points.points],
            s=1,
            c="black",
        )
        ax.set_xlabel("Easting (m)")
        ax.set_ylabel("Northing (m)")
        ax.set_title(f"{len(points)} stems")
        fig.savefig(path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)

    logger.info(f"Saved CHM plot with {len(points)} stems to {path}")
    return path
