"""
Unit tests for spatial extent filtering.

Tests cover:
- Inclusive bounds with and without buffer
- CRS precondition
- Crop extent of retained points
"""
import pytest
from pyproj import CRS

from woodyveg.domain.exceptions import CRSMismatchError, InvalidCRSError
from woodyveg.domain.models import SpatialExtent, StemPoint, StemPointSet
from woodyveg.services.domain.spatial_extent_filter import SpatialExtentFilter
from woodyveg.utils.geo_projection import get_utm_crs, parse_utm_zone, same_crs


CRS_ID = "EPSG:32618"


def make_points(coords, crs=CRS_ID) -> StemPointSet:
    return StemPointSet(
        crs=crs,
        points=[
            StemPoint(individual_id=f"tree-{i}", easting=x, northing=y)
            for i, (x, y) in enumerate(coords)
        ],
    )


@pytest.fixture
def extent() -> SpatialExtent:
    return SpatialExtent(xmin=0.0, xmax=100.0, ymin=0.0, ymax=50.0, crs=CRS_ID)


# ============================================================
# Membership Tests
# ============================================================

class TestMembership:
    """Tests for which points are retained."""

    def test_exact_extent_includes_edges(self, extent):
        points = make_points([
            (0, 0), (100, 50), (50, 25), (100, 0),   # inside or on edges
            (-0.01, 25), (50, 50.01), (150, 25),     # outside
        ])

        result = SpatialExtentFilter().filter(points, extent)

        kept = [(p.easting, p.northing) for p in result.points]
        assert kept == [(0, 0), (100, 50), (50, 25), (100, 0)]

    def test_buffer_widens_both_axes(self, extent):
        points = make_points([(-5, 25), (105, 25), (50, -5), (50, 55), (105.01, 25)])

        exact = SpatialExtentFilter().filter(points, extent)
        buffered = SpatialExtentFilter().filter(points, extent, buffer_meters=5)

        assert len(exact) == 0
        assert len(buffered) == 4

    def test_matches_predicate_on_grid(self, extent):
        coords = [(x, y) for x in range(-20, 130, 7) for y in range(-20, 80, 7)]
        points = make_points(coords)

        for buffer in (0.0, 3.0):
            result = SpatialExtentFilter().filter(points, extent, buffer)
            expected = [
                (x, y) for x, y in coords
                if -buffer <= x <= 100 + buffer and -buffer <= y <= 50 + buffer
            ]
            assert [(p.easting, p.northing) for p in result.points] == expected

    def test_keeps_crs_and_attributes(self, extent):
        points = make_points([(10, 10)])

        result = SpatialExtentFilter().filter(points, extent)

        assert result.crs == CRS_ID
        assert result.points[0].individual_id == "tree-0"

    def test_empty_points(self, extent):
        result = SpatialExtentFilter().filter(make_points([]), extent)

        assert len(result) == 0

    def test_negative_buffer_rejected(self, extent):
        with pytest.raises(ValueError, match="non-negative"):
            SpatialExtentFilter().filter(make_points([(1, 1)]), extent, buffer_meters=-1)


# ============================================================
# CRS Tests
# ============================================================

class TestCRS:
    """Tests for the shared-CRS precondition."""

    def test_mismatch_raises(self, extent):
        points = make_points([(10, 10)], crs="EPSG:32619")

        with pytest.raises(CRSMismatchError, match="EPSG:32619"):
            SpatialExtentFilter().filter(points, extent)

    def test_equivalent_definitions_accepted(self, extent):
        points = make_points([(10, 10)], crs=CRS.from_epsg(32618).to_wkt())

        result = SpatialExtentFilter().filter(points, extent)

        assert len(result) == 1

    def test_utm_helpers(self):
        assert get_utm_crs(18, "N") == "EPSG:32618"
        assert get_utm_crs(55, "S") == "EPSG:32755"
        assert parse_utm_zone("18N") == (18, "N")
        assert parse_utm_zone("18") == (18, "N")
        assert parse_utm_zone("zone") is None
        assert same_crs(get_utm_crs(18), "EPSG:32618")

    def test_unparseable_crs(self):
        with pytest.raises(InvalidCRSError):
            same_crs("not-a-crs", "EPSG:32618")


# ============================================================
# Crop Extent Tests
# ============================================================

class TestCropExtent:
    """Tests for the buffered bounding extent used to crop the raster."""

    def test_bounding_box_plus_buffer(self):
        points = make_points([(10, 20), (30, 5), (25, 40)])

        crop = SpatialExtentFilter().crop_extent(points, buffer_meters=5)

        assert (crop.xmin, crop.xmax, crop.ymin, crop.ymax) == (5, 35, 0, 45)
        assert crop.crs == CRS_ID

    def test_single_point(self):
        crop = SpatialExtentFilter().crop_extent(make_points([(10, 20)]), buffer_meters=5)

        assert (crop.xmin, crop.xmax, crop.ymin, crop.ymax) == (5, 15, 15, 25)

    def test_empty_points(self):
        assert SpatialExtentFilter().crop_extent(make_points([]), buffer_meters=5) is None


# ============================================================
# Extent Model Tests
# ============================================================

class TestSpatialExtent:
    """Tests for the extent model itself."""

    def test_invalid_bounds_rejected(self):
        with pytest.raises(ValueError):
            SpatialExtent(xmin=10, xmax=0, ymin=0, ymax=10, crs=CRS_ID)

    def test_contains_is_inclusive(self, extent):
        assert extent.contains(0, 0)
        assert extent.contains(100, 50)
        assert not extent.contains(100.1, 50)
