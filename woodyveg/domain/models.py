"""
Domain models for woody vegetation survey data.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, file formats, etc.).

Field aliases are the NEON column names so records can be built straight
from the mapping and tagging table and written back with the same headers.
"""
import math
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


REFERENCE_KEY_SEPARATOR = "."


def parse_measurement(value: Any) -> Optional[float]:
    """
    Parse a numeric survey value, mapping anything unusable to None.

    Args:
        value: Raw value (number, numeric string, None, NaN, ...)

    Returns:
        Finite float, or None if the value is missing or not a finite number
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_identifier(value: Any) -> Optional[str]:
    """Normalize an identifier cell to a string (``41.0`` -> ``"41"``)."""
    if value is None:
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    return text or None


class SurveyRecord(BaseModel):
    """
    One stem measurement from the mapping and tagging table.

    Columns other than the declared fields (plotID, date, eventID, ...) are
    kept as extra attributes so they can be written back out.
    """
    uid: Optional[str] = None
    individual_id: Optional[str] = Field(default=None, alias="individualID")
    scientific_name: Optional[str] = Field(default=None, alias="scientificName")
    taxon_id: Optional[str] = Field(default=None, alias="taxonID")
    named_location: Optional[str] = Field(default=None, alias="namedLocation")
    point_id: Optional[str] = Field(default=None, alias="pointID")
    stem_distance: Optional[float] = Field(
        default=None,
        alias="stemDistance",
        description="Distance from the reference point to the stem in meters",
    )
    stem_azimuth: Optional[float] = Field(
        default=None,
        alias="stemAzimuth",
        description="Bearing from the reference point in degrees clockwise from north",
    )

    class Config:
        populate_by_name = True
        frozen = True
        extra = "allow"

    @field_validator(
        "uid", "individual_id", "scientific_name", "taxon_id",
        "named_location", "point_id",
        mode="before",
    )
    @classmethod
    def normalize_identifier(cls, value: Any) -> Optional[str]:
        return parse_identifier(value)

    @field_validator("stem_distance", "stem_azimuth", mode="before")
    @classmethod
    def normalize_measurement(cls, value: Any) -> Optional[float]:
        return parse_measurement(value)

    @property
    def reference_key(self) -> Optional[str]:
        """Composite named location key, e.g. ``HARV_033.basePlot.vst.41``."""
        if not self.named_location or not self.point_id:
            return None
        return f"{self.named_location}{REFERENCE_KEY_SEPARATOR}{self.point_id}"


class ResolvedReference(BaseModel):
    """Surveyed coordinates of a reference point."""
    named_location: str
    easting: Optional[float] = None
    northing: Optional[float] = None
    utm_zone: Optional[str] = None
    elevation: Optional[float] = None

    class Config:
        frozen = True

    @field_validator("easting", "northing", "elevation", mode="before")
    @classmethod
    def normalize_coordinate(cls, value: Any) -> Optional[float]:
        return parse_measurement(value)

    @property
    def is_complete(self) -> bool:
        return self.easting is not None and self.northing is not None


class PlantLocation(SurveyRecord):
    """A survey record with its computed absolute coordinates."""
    named_location_point_id: Optional[str] = Field(
        default=None, alias="namedLocationPointID"
    )
    reference_easting: Optional[float] = Field(default=None, alias="referenceEasting")
    reference_northing: Optional[float] = Field(default=None, alias="referenceNorthing")
    easting: Optional[float] = None
    northing: Optional[float] = None

    @field_validator(
        "reference_easting", "reference_northing", "easting", "northing",
        mode="before",
    )
    @classmethod
    def normalize_coordinate(cls, value: Any) -> Optional[float]:
        return parse_measurement(value)

    @property
    def has_coordinates(self) -> bool:
        return self.easting is not None and self.northing is not None


class StemPoint(BaseModel):
    """Attributes written for each stem in the point-feature output."""
    individual_id: Optional[str] = Field(default=None, alias="individualID")
    scientific_name: Optional[str] = Field(default=None, alias="scientificName")
    taxon_id: Optional[str] = Field(default=None, alias="taxonID")
    easting: float
    northing: float

    class Config:
        populate_by_name = True
        frozen = True

    @classmethod
    def from_location(cls, location: PlantLocation) -> "StemPoint":
        return cls(
            individual_id=location.individual_id,
            scientific_name=location.scientific_name,
            taxon_id=location.taxon_id,
            easting=location.easting,
            northing=location.northing,
        )


class StemPointSet(BaseModel):
    """Stem points tagged with the coordinate reference system they are in."""
    crs: str = Field(description="CRS identifier, e.g. 'EPSG:32618' or WKT")
    points: List[StemPoint] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)


class SpatialExtent(BaseModel):
    """Axis-aligned bounding rectangle in a projected CRS."""
    xmin: float
    xmax: float
    ymin: float
    ymax: float
    crs: str

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_bounds(self) -> "SpatialExtent":
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError(
                f"Invalid extent: x=[{self.xmin}, {self.xmax}], y=[{self.ymin}, {self.ymax}]"
            )
        return self

    def buffered(self, buffer_meters: float) -> "SpatialExtent":
        """
        Widen the extent symmetrically on both axes.

        Args:
            buffer_meters: Distance added to every side (must be >= 0)

        Returns:
            New SpatialExtent in the same CRS
        """
        if buffer_meters < 0:
            raise ValueError(f"Buffer must be non-negative, got {buffer_meters}")
        return SpatialExtent(
            xmin=self.xmin - buffer_meters,
            xmax=self.xmax + buffer_meters,
            ymin=self.ymin - buffer_meters,
            ymax=self.ymax + buffer_meters,
            crs=self.crs,
        )

    def contains(self, x: float, y: float) -> bool:
        """Inclusive point-in-rectangle test."""
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax
