"""
API endpoint constants and configuration.

This module contains the NEON data portal endpoint paths and related constants.
"""
from urllib.parse import quote


# NEON API Endpoints
class NeonAPIEndpoints:
    """NEON data portal endpoint paths."""

    LOCATIONS = "/locations/{location_name}"

    @classmethod
    def get_location(cls, location_name: str) -> str:
        """
        Get the named location endpoint.

        Args:
            location_name: Named location, e.g. ``HARV_033.basePlot.vst.41``

        Returns:
            Formatted endpoint path
        """
        return cls.LOCATIONS.format(location_name=quote(location_name, safe=""))


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"
    TOKEN_HEADER = "X-API-Token"
