"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # NEON API Configuration
    neon_api_base_url: str = Field(
        default="https://data.neonscience.org/api/v0",
        description="Base URL for the NEON data portal API"
    )
    neon_api_token: str = Field(
        default="",
        description="Optional NEON API token (raises the public rate limit)"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single HTTP request"
    )

    # Reference resolution
    resolver_timeout_seconds: float = Field(
        default=120.0,
        description="Deadline for resolving one reference point, retries included"
    )
    max_concurrent_requests: int = Field(
        default=8,
        description="Maximum number of named locations resolved at once"
    )

    # Input / output paths
    mapping_and_tagging_path: str = Field(
        default="data/NEON_struct-woody-plant.zip",
        description="vst_mappingandtagging CSV, stacked-files directory or NEON zip"
    )
    chm_path: str = Field(
        default="data/NEON_D01_HARV_DP3_732000_4713000_CHM.tif",
        description="Canopy height model GeoTIFF providing extent and CRS"
    )
    output_dir: str = Field(
        default="output",
        description="Directory for all workflow outputs"
    )
    locations_csv_name: str = Field(
        default="woody_veg_locations.csv",
        description="File name of the tabular stem location output"
    )
    shapefile_layer_name: str = Field(
        default="woody_veg_location_species",
        description="Layer name of the stem point shapefile"
    )
    plot_filename: str = Field(
        default="woody_veg_locations_chm.png",
        description="File name of the CHM plot with stem locations"
    )

    # Spatial filtering
    extent_buffer_meters: float = Field(
        default=0.0,
        description="Buffer applied to the CHM extent when counting stems within it"
    )
    crop_buffer_meters: float = Field(
        default=5.0,
        description="Buffer added around the retained stems when cropping the CHM"
    )
    plot_enabled: bool = Field(
        default=True,
        description="Whether to plot the cropped CHM with stem locations"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Application Settings
    app_name: str = Field(
        default="Woody Vegetation Stem Locations",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
