"""
Application service: Orchestration of the stem location pipeline.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from woodyveg.domain.exceptions import InvalidCRSError
from woodyveg.domain.models import (
    PlantLocation,
    ResolvedReference,
    SpatialExtent,
    StemPoint,
    StemPointSet,
    SurveyRecord,
)
from woodyveg.services.domain.polar_offset_projector import PolarOffsetProjector
from woodyveg.services.domain.record_filter import FilterResult, RecordFilter, count_trees
from woodyveg.services.domain.spatial_extent_filter import SpatialExtentFilter
from woodyveg.utils.geo_projection import get_utm_crs, parse_crs, parse_utm_zone, same_crs

logger = logging.getLogger(__name__)


class ReferenceResolver(Protocol):
    """Looks up surveyed coordinates for reference point keys."""

    async def resolve(
        self, keys: Iterable[str]
    ) -> Mapping[str, Optional[ResolvedReference]]:
        ...


@dataclass
class LocationResult:
    """Everything the pipeline produces for one survey table."""
    filter_result: FilterResult
    locations: list[PlantLocation] = field(default_factory=list)
    complete_locations: list[PlantLocation] = field(default_factory=list)
    stem_points: Optional[StemPointSet] = None
    stems_within_extent: Optional[StemPointSet] = None
    crop_extent: Optional[SpatialExtent] = None
    unresolved_keys: list[str] = field(default_factory=list)

    @property
    def input_tree_count(self) -> int:
        return self.filter_result.input_tree_count

    @property
    def trees_with_location_count(self) -> int:
        return self.filter_result.retained_tree_count

    @property
    def complete_count(self) -> int:
        return len(self.complete_locations)

    @property
    def within_extent_count(self) -> int:
        return len(self.stems_within_extent) if self.stems_within_extent else 0


class WoodyVegLocationService:
    """
    Application service for computing stem locations.

    Orchestrates the domain services and the reference resolver.
    No geometry here, only coordination:
    filter -> resolve -> project -> drop incomplete -> clip to extent.
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        record_filter: Optional[RecordFilter] = None,
        projector: Optional[PolarOffsetProjector] = None,
        extent_filter: Optional[SpatialExtentFilter] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            resolver: Reference point resolver (e.g. NeonLocationClient)
            record_filter: Completeness filter for survey records
            projector: Distance/azimuth to coordinate projector
            extent_filter: Raster extent filter
        """
        self.resolver = resolver
        self.record_filter = record_filter or RecordFilter()
        self.projector = projector or PolarOffsetProjector()
        self.extent_filter = extent_filter or SpatialExtentFilter()

    async def compute_locations(
        self,
        records: Sequence[SurveyRecord],
        extent: SpatialExtent,
        extent_buffer_meters: float = 0.0,
        crop_buffer_meters: float = 5.0,
    ) -> LocationResult:
        """
        Compute absolute stem locations and clip them to a raster extent.

        This method orchestrates:
        1. Dropping records without stem distance and azimuth
        2. Resolving the distinct reference points in one batch
        3. Projecting each stem from its reference point
        4. Dropping locations without easting and northing
        5. Tagging the stems with the raster CRS and clipping to its extent
        6. Computing the buffered crop extent of the retained stems

        Args:
            records: Survey records from the mapping and tagging table
            extent: Raster extent and CRS
            extent_buffer_meters: Buffer for the within-extent count (normally 0)
            crop_buffer_meters: Buffer around retained stems for cropping

        Returns:
            LocationResult with all intermediate sets and counts

        Raises:
            CRSMismatchError: If the stems and extent CRS disagree
        """
        # First completeness pass: measurements present
        filter_result = self.record_filter.filter(records)

        # Resolve reference points
        keys = {r.reference_key for r in filter_result.records if r.reference_key}
        references = dict(await self.resolver.resolve(sorted(keys))) if keys else {}
        unresolved = sorted(
            k for k in keys
            if references.get(k) is None or not references[k].is_complete
        )
        if unresolved:
            logger.warning(f"{len(unresolved)} reference points could not be resolved")
        self._check_reference_zones(references, extent)

        # Project every stem
        locations = self.projector.project_records(filter_result.records, references)

        # Second completeness pass: computed coordinates present
        complete = [loc for loc in locations if loc.has_coordinates]
        logger.info(f"There are {count_trees(complete)} trees with computed coordinates "
                    f"({len(complete)}/{len(locations)} records)")

        # Attach the raster CRS; points are not reprojected
        stem_points = StemPointSet(
            crs=extent.crs,
            points=[StemPoint.from_location(loc) for loc in complete],
        )

        within = self.extent_filter.filter(stem_points, extent, extent_buffer_meters)
        logger.info(f"{len(within)} trees are within the current CHM extent")

        crop_extent = self.extent_filter.crop_extent(within, crop_buffer_meters)

        return LocationResult(
            filter_result=filter_result,
            locations=locations,
            complete_locations=complete,
            stem_points=stem_points,
            stems_within_extent=within,
            crop_extent=crop_extent,
            unresolved_keys=unresolved,
        )

    def _check_reference_zones(
        self,
        references: Mapping[str, Optional[ResolvedReference]],
        extent: SpatialExtent,
    ) -> None:
        """Warn when resolved reference points report a UTM zone other than the raster's."""
        zones = {r.utm_zone for r in references.values() if r is not None and r.utm_zone}
        if not zones:
            return
        try:
            raster_crs = parse_crs(extent.crs)
        except InvalidCRSError as e:
            logger.warning(f"Cannot compare reference UTM zones with the raster CRS: {e}")
            return

        for zone in sorted(zones):
            parsed = parse_utm_zone(zone)
            if parsed is None:
                logger.debug(f"Ignoring unparseable UTM zone '{zone}'")
                continue
            if not same_crs(get_utm_crs(*parsed), raster_crs):
                logger.warning(f"Reference points in UTM zone {zone} do not match "
                               f"the raster CRS {extent.crs}")
