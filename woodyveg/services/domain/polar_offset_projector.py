"""
Domain service: absolute stem coordinates from distance/azimuth offsets.

Azimuths are compass bearings (0 = north, 90 = east, clockwise), so the
easting offset uses sin and the northing offset uses cos. Azimuths outside
[0, 360) are accepted as-is; sin/cos are periodic.
"""
import logging
import math
from typing import Mapping, Optional, Sequence

from woodyveg.domain.models import PlantLocation, ResolvedReference, SurveyRecord

logger = logging.getLogger(__name__)

# Columns the projector computes; same-named input columns are not carried over
DERIVED_FIELDS = {
    key
    for name, info in PlantLocation.model_fields.items()
    if name not in SurveyRecord.model_fields
    for key in (name, info.alias)
    if key
}


def project(
    ref_easting: float,
    ref_northing: float,
    distance: float,
    azimuth_degrees: float,
) -> tuple[float, float]:
    """
    Offset a reference point by a distance along a compass bearing.

    Args:
        ref_easting: Easting of the reference point
        ref_northing: Northing of the reference point
        distance: Distance from the reference point in meters (>= 0)
        azimuth_degrees: Bearing in degrees clockwise from north

    Returns:
        (easting, northing) of the offset point

    Raises:
        ValueError: If any operand is not a finite number or distance is negative
    """
    operands = {
        "ref_easting": ref_easting,
        "ref_northing": ref_northing,
        "distance": distance,
        "azimuth_degrees": azimuth_degrees,
    }
    for name, value in operands.items():
        if value is None or not math.isfinite(value):
            raise ValueError(f"{name} must be a finite number, got {value!r}")
    if distance < 0:
        raise ValueError(f"distance must be non-negative, got {distance}")

    theta = azimuth_degrees * math.pi / 180
    easting = ref_easting + distance * math.sin(theta)
    northing = ref_northing + distance * math.cos(theta)
    return easting, northing


class PolarOffsetProjector:
    """
    Computes PlantLocations for survey records.

    Any missing operand (unresolved reference, missing measurement, invalid
    distance) yields a PlantLocation with easting and northing set to None.
    """

    def project_record(
        self,
        record: SurveyRecord,
        reference: Optional[ResolvedReference],
    ) -> PlantLocation:
        """
        Project one record from its resolved reference point.

        Args:
            record: Survey record with stem distance and azimuth
            reference: Resolved reference point, or None if unresolved

        Returns:
            PlantLocation carrying the record's fields plus coordinates
        """
        easting = northing = None
        ref_easting = reference.easting if reference else None
        ref_northing = reference.northing if reference else None

        if (
            ref_easting is not None
            and ref_northing is not None
            and record.stem_distance is not None
            and record.stem_azimuth is not None
        ):
            try:
                easting, northing = project(
                    ref_easting, ref_northing, record.stem_distance, record.stem_azimuth
                )
            except ValueError as e:
                logger.debug(f"Cannot project record {record.uid}: {e}")

        carried = {
            k: v for k, v in record.model_dump().items() if k not in DERIVED_FIELDS
        }
        return PlantLocation(
            **carried,
            named_location_point_id=record.reference_key,
            reference_easting=ref_easting,
            reference_northing=ref_northing,
            easting=easting,
            northing=northing,
        )

    def project_records(
        self,
        records: Sequence[SurveyRecord],
        references: Mapping[str, Optional[ResolvedReference]],
    ) -> list[PlantLocation]:
        """
        Project every record against a read-only mapping of resolved references.

        Args:
            records: Survey records to project
            references: Resolved reference per reference key (None if unresolved)

        Returns:
            One PlantLocation per input record, in input order
        """
        locations = []
        unresolved = 0

        for record in records:
            key = record.reference_key
            reference = references.get(key) if key is not None else None
            if reference is None or not reference.is_complete:
                unresolved += 1
            locations.append(self.project_record(record, reference))

        if unresolved:
            logger.info(f"{unresolved}/{len(records)} records have no resolved reference point")

        return locations
