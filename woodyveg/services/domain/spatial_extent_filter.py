"""
Domain service: clipping stem points to a raster's spatial extent.
"""
import logging
from typing import Optional

from woodyveg.domain.exceptions import CRSMismatchError
from woodyveg.domain.models import SpatialExtent, StemPointSet
from woodyveg.utils.geo_projection import same_crs
from woodyveg.utils.spatial_helpers import (
    bounding_box,
    coordinates_array,
    within_bounds_mask,
)

logger = logging.getLogger(__name__)


class SpatialExtentFilter:
    """
    Keeps stem points that fall inside a bounding rectangle.

    Points and extent must already share a CRS; nothing is reprojected.
    """

    def filter(
        self,
        points: StemPointSet,
        extent: SpatialExtent,
        buffer_meters: float = 0.0,
    ) -> StemPointSet:
        """
        Retain points inside the (optionally buffered) extent.

        Args:
            points: Stem points tagged with their CRS
            extent: Bounding rectangle and CRS of the raster
            buffer_meters: Symmetric widening of the extent on both axes

        Returns:
            StemPointSet of retained points, in input order

        Raises:
            CRSMismatchError: If points and extent use different CRSs
            ValueError: If buffer_meters is negative
        """
        if not same_crs(points.crs, extent.crs):
            raise CRSMismatchError(points.crs, extent.crs)

        bounds = extent.buffered(buffer_meters)
        coords = coordinates_array([(p.easting, p.northing) for p in points.points])
        mask = within_bounds_mask(coords, bounds.xmin, bounds.xmax, bounds.ymin, bounds.ymax)

        retained = [p for p, keep in zip(points.points, mask) if keep]
        logger.debug(f"{len(retained)}/{len(points)} points within extent "
                     f"(buffer {buffer_meters}m)")
        return StemPointSet(crs=points.crs, points=retained)

    def crop_extent(
        self,
        points: StemPointSet,
        buffer_meters: float,
    ) -> Optional[SpatialExtent]:
        """
        Bounding extent of the points widened by a buffer, for raster cropping.

        Args:
            points: Stem points tagged with their CRS
            buffer_meters: Distance added to every side of the bounding box

        Returns:
            SpatialExtent in the points' CRS, or None if there are no points
        """
        coords = coordinates_array([(p.easting, p.northing) for p in points.points])
        box = bounding_box(coords)
        if box is None:
            return None

        xmin, xmax, ymin, ymax = box
        extent = SpatialExtent(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax, crs=points.crs)
        return extent.buffered(buffer_meters)
