"""
Infrastructure layer: writing stem locations to CSV and shapefile.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import geopandas as gpd
import pandas as pd
from shapely.geometry import Point

from woodyveg.domain.models import PlantLocation, StemPointSet

logger = logging.getLogger(__name__)


# Shapefile (dBase) field names are limited to 10 characters
SHAPEFILE_FIELDS = {
    "individual_id": "indvdlID",
    "scientific_name": "sciName",
    "taxon_id": "taxonID",
    "easting": "easting",
    "northing": "northing",
}

LOCATION_COLUMNS = [
    field.alias or name for name, field in PlantLocation.model_fields.items()
]


def locations_to_frame(locations: Sequence[PlantLocation]) -> pd.DataFrame:
    """
    Tabulate plant locations using the NEON column names.

    The location columns come first, followed by any other survey table
    columns in the order they were first seen.
    """
    extra_columns = {}
    for loc in locations:
        for column in loc.model_extra or {}:
            if column not in LOCATION_COLUMNS:
                extra_columns.setdefault(column, None)

    rows = [loc.model_dump(by_alias=True) for loc in locations]
    return pd.DataFrame(rows, columns=LOCATION_COLUMNS + list(extra_columns))


def write_locations_csv(
    locations: Sequence[PlantLocation],
    path: Union[str, Path],
) -> Path:
    """
    Write plant locations with their computed coordinates to CSV.

    Args:
        locations: Plant locations to write
        path: Destination CSV file (parent directories are created)

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    locations_to_frame(locations).to_csv(path, index=False)
    logger.info(f"Wrote {len(locations)} stem locations to {path}")
    return path


def points_to_geodataframe(points: StemPointSet) -> gpd.GeoDataFrame:
    """Build a GeoDataFrame with shapefile-safe column names and the set's CRS."""
    rows = [
        {SHAPEFILE_FIELDS[k]: v for k, v in p.model_dump().items()}
        for p in points.points
    ]
    frame = pd.DataFrame(rows, columns=list(SHAPEFILE_FIELDS.values()))
    geometry = [Point(p.easting, p.northing) for p in points.points]
    return gpd.GeoDataFrame(frame, geometry=geometry, crs=points.crs)


def write_point_shapefile(
    points: StemPointSet,
    directory: Union[str, Path],
    layer_name: str,
) -> Optional[Path]:
    """
    Write stem points as an ESRI Shapefile layer, replacing any existing one.

    Args:
        points: Stem points tagged with their CRS
        directory: Output directory (created if needed)
        layer_name: Layer name, used as the .shp file stem

    Returns:
        Path of the .shp file, or None if there were no points to write
    """
    if not points.points:
        logger.warning(f"No stem points to write for layer '{layer_name}'")
        return None

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{layer_name}.shp"

    points_to_geodataframe(points).to_file(path, driver="ESRI Shapefile")
    logger.info(f"Wrote {len(points)} stem points to {path}")
    return path
