"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample survey records
- Sample resolved reference points
- Sample CHM extent and GeoTIFF
- Mock reference resolver
"""
import pytest
import numpy as np
import pandas as pd
import rasterio
from pathlib import Path
from unittest.mock import AsyncMock
from rasterio.transform import from_origin

from woodyveg.domain.models import ResolvedReference, SpatialExtent, SurveyRecord
from woodyveg.infrastructure.neon_location_client import NeonLocationClient


CHM_CRS = "EPSG:32618"
RESOLVED_KEY = "HARV_033.basePlot.vst.41"
UNRESOLVED_KEY = "HARV_033.basePlot.vst.21"


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def sample_records() -> list[SurveyRecord]:
    """Two complete records (one resolvable, one not) and one without azimuth."""
    return [
        SurveyRecord(
            uid="a1",
            individual_id="NEON.PLA.D01.HARV.01001",
            scientific_name="Acer rubrum L.",
            taxon_id="ACRU",
            named_location="HARV_033.basePlot.vst",
            point_id="41",
            stem_distance=10.0,
            stem_azimuth=90.0,
        ),
        SurveyRecord(
            uid="a2",
            individual_id="NEON.PLA.D01.HARV.01002",
            scientific_name="Tsuga canadensis (L.) Carrière",
            taxon_id="TSCA",
            named_location="HARV_033.basePlot.vst",
            point_id="21",
            stem_distance=5.0,
            stem_azimuth=180.0,
        ),
        SurveyRecord(
            uid="a3",
            individual_id="NEON.PLA.D01.HARV.01003",
            scientific_name="Quercus rubra L.",
            taxon_id="QURU",
            named_location="HARV_033.basePlot.vst",
            point_id="41",
            stem_distance=3.0,
            stem_azimuth=None,
        ),
    ]


@pytest.fixture
def resolved_references() -> dict:
    """Resolver responses: one surveyed reference point, one unknown."""
    return {
        RESOLVED_KEY: ResolvedReference(
            named_location=RESOLVED_KEY,
            easting=732100.0,
            northing=4713100.0,
            utm_zone="18N",
        ),
        UNRESOLVED_KEY: None,
    }


@pytest.fixture
def chm_extent() -> SpatialExtent:
    """Extent of a 1 km CHM tile."""
    return SpatialExtent(
        xmin=732000.0,
        xmax=733000.0,
        ymin=4713000.0,
        ymax=4714000.0,
        crs=CHM_CRS,
    )


# ============================================================
# File Fixtures
# ============================================================

@pytest.fixture
def chm_path(tmp_path) -> Path:
    """Write a 100x100 CHM GeoTIFF with 10 m pixels covering chm_extent."""
    path = tmp_path / "NEON_D01_HARV_DP3_732000_4713000_CHM.tif"
    data = np.linspace(0, 30, 100 * 100, dtype="float32").reshape(100, 100)

    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=100,
        width=100,
        count=1,
        dtype="float32",
        crs=CHM_CRS,
        transform=from_origin(732000.0, 4714000.0, 10.0, 10.0),
        nodata=-9999.0,
    ) as dst:
        dst.write(data, 1)

    return path


@pytest.fixture
def chm_without_crs_path(tmp_path) -> Path:
    """Write a small GeoTIFF that has a transform but no CRS."""
    path = tmp_path / "chm_no_crs.tif"

    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=10,
        width=10,
        count=1,
        dtype="float32",
        transform=from_origin(732000.0, 4714000.0, 10.0, 10.0),
    ) as dst:
        dst.write(np.zeros((10, 10), dtype="float32"), 1)

    return path


@pytest.fixture
def mapping_table_rows() -> list[dict]:
    """Raw mapping and tagging rows as they appear in the NEON table."""
    return [
        {"uid": "a1", "individualID": "NEON.PLA.D01.HARV.01001",
         "scientificName": "Acer rubrum L.", "taxonID": "ACRU",
         "namedLocation": "HARV_033.basePlot.vst", "pointID": "41",
         "stemDistance": 10.0, "stemAzimuth": 90.0, "plotID": "HARV_033"},
        {"uid": "a2", "individualID": "NEON.PLA.D01.HARV.01002",
         "scientificName": "Tsuga canadensis (L.) Carrière", "taxonID": "TSCA",
         "namedLocation": "HARV_033.basePlot.vst", "pointID": "21",
         "stemDistance": 5.0, "stemAzimuth": 180.0, "plotID": "HARV_033"},
        {"uid": "a3", "individualID": "NEON.PLA.D01.HARV.01003",
         "scientificName": "Quercus rubra L.", "taxonID": "QURU",
         "namedLocation": "HARV_033.basePlot.vst", "pointID": "41",
         "stemDistance": 3.0, "stemAzimuth": None, "plotID": "HARV_033"},
        {"uid": "a4", "individualID": "NEON.PLA.D01.HARV.01004",
         "scientificName": "Pinus strobus L.", "taxonID": "PIST",
         "namedLocation": "HARV_033.basePlot.vst", "pointID": None,
         "stemDistance": None, "stemAzimuth": None, "plotID": "HARV_033"},
    ]


@pytest.fixture
def mapping_csv_path(tmp_path, mapping_table_rows) -> Path:
    """Write the mapping and tagging rows to a stacked-files CSV."""
    path = tmp_path / "stackedFiles" / "vst_mappingandtagging.csv"
    path.parent.mkdir(parents=True)
    pd.DataFrame(mapping_table_rows).to_csv(path, index=False)
    return path


# ============================================================
# Mock Resolver Fixtures
# ============================================================

@pytest.fixture
def mock_resolver(resolved_references):
    """Create a mock resolver answering from resolved_references."""
    resolver = AsyncMock(spec=NeonLocationClient)

    async def resolve(keys):
        return {key: resolved_references.get(key) for key in keys}

    resolver.resolve.side_effect = resolve
    return resolver
