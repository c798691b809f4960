"""
Coordinate reference system utilities.
"""
from typing import Optional, Union
from pyproj import CRS
from pyproj.exceptions import CRSError

from woodyveg.domain.exceptions import InvalidCRSError


def get_utm_crs(zone: int, hemisphere: str = "N") -> str:
    """
    Get the WGS84 UTM CRS for a zone.

    Args:
        zone: UTM zone number (1-60)
        hemisphere: "N" or "S"

    Returns:
        EPSG code for the UTM zone
    """
    if not 1 <= zone <= 60:
        raise ValueError(f"UTM zone must be in 1-60, got {zone}")
    # Northern hemisphere: EPSG:326XX, Southern hemisphere: EPSG:327XX
    prefix = "7" if hemisphere.upper().startswith("S") else "6"
    return f"EPSG:32{prefix}{zone:02d}"


def parse_utm_zone(zone: Optional[str]) -> Optional[tuple[int, str]]:
    """
    Parse a UTM zone label such as ``"18N"``, ``"18"`` or ``"55S"``.

    Returns:
        (zone number, hemisphere) or None if the label is not a UTM zone
    """
    if zone is None:
        return None
    label = str(zone).strip().upper()
    hemisphere = "N"
    if label and label[-1] in ("N", "S"):
        hemisphere = label[-1]
        label = label[:-1]
    try:
        number = int(float(label))
    except ValueError:
        return None
    if not 1 <= number <= 60:
        return None
    return number, hemisphere
def parse_crs(crs: Union[str, CRS]) -> CRS:
    """
    Parse a CRS definition with pyproj.

    Raises:
        InvalidCRSError: If the definition cannot be parsed
    """
    try:
        return CRS.from_user_input(crs)
    except CRSError as e:
        raise InvalidCRSError(f"Invalid CRS definition: {e}") from e


def same_crs(crs_a: Union[str, CRS], crs_b: Union[str, CRS]) -> bool:
    """
    Check whether two CRS definitions describe the same system.

    Accepts anything pyproj understands (EPSG codes, WKT, PROJ strings).
    Axis order is ignored, so ``EPSG:32618`` equals the WKT rasterio reports
    for the same zone.

    Raises:
        InvalidCRSError: If either definition cannot be parsed
    """
    if isinstance(crs_a, str) and crs_a == crs_b:
        return True
    return parse_crs(crs_a).equals(parse_crs(crs_b), ignore_axis_order=True)
