"""
Batch entry point: compute woody vegetation stem locations.

Reads the NEON mapping and tagging table and the CHM raster, resolves the
reference points, writes the stem locations to CSV and shapefile and
optionally plots them over the cropped CHM.
"""
import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from woodyveg.config import Settings, settings
from woodyveg.domain.exceptions import WoodyVegError
from woodyveg.infrastructure.chm_plot import plot_stems_on_chm
from woodyveg.infrastructure.neon_location_client import NeonLocationClient
from woodyveg.infrastructure.output_writer import write_locations_csv, write_point_shapefile
from woodyveg.infrastructure.raster_reader import crop_raster, read_raster_extent
from woodyveg.infrastructure.survey_reader import read_mapping_and_tagging
from woodyveg.services.application.location_service import (
    ReferenceResolver,
    WoodyVegLocationService,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkflowSummary:
    """Counts and artifacts of a workflow run."""
    input_tree_count: int
    trees_with_location_count: int
    complete_count: int
    within_extent_count: int
    locations_csv: Path
    shapefile: Optional[Path] = None
    plot: Optional[Path] = None


async def run_workflow(
    config: Settings = settings,
    resolver: Optional[ReferenceResolver] = None,
) -> WorkflowSummary:
    """
    Run the full stem location workflow.

    Args:
        config: Paths, buffers and API settings
        resolver: Reference resolver; a NeonLocationClient is created and
            closed here if none is given

    Returns:
        WorkflowSummary with counts and output paths

    Raises:
        MissingColumnsError: If the survey table lacks required columns
        CRSMismatchError: If stems and CHM extent disagree on CRS
        FileNotFoundError: If an input is missing
    """
    logger.info(f"Starting {config.app_name} v{config.app_version}")

    records = read_mapping_and_tagging(config.mapping_and_tagging_path)
    extent = read_raster_extent(config.chm_path)

    client = None
    if resolver is None:
        client = NeonLocationClient()
        resolver = client
    try:
        service = WoodyVegLocationService(resolver=resolver)
        result = await service.compute_locations(
            records,
            extent,
            extent_buffer_meters=config.extent_buffer_meters,
            crop_buffer_meters=config.crop_buffer_meters,
        )
    finally:
        if client is not None:
            await client.close()

    output_dir = Path(config.output_dir)
    csv_path = write_locations_csv(
        result.complete_locations, output_dir / config.locations_csv_name
    )
    shapefile = write_point_shapefile(
        result.stems_within_extent, output_dir, config.shapefile_layer_name
    )

    plot = None
    if config.plot_enabled and result.crop_extent is not None:
        cropped = crop_raster(config.chm_path, result.crop_extent)
        plot = plot_stems_on_chm(
            cropped, result.stems_within_extent, output_dir / config.plot_filename
        )

    return WorkflowSummary(
        input_tree_count=result.input_tree_count,
        trees_with_location_count=result.trees_with_location_count,
        complete_count=result.complete_count,
        within_extent_count=result.within_extent_count,
        locations_csv=csv_path,
        shapefile=shapefile,
        plot=plot,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute UTM locations of NEON woody vegetation stems."
    )
    parser.add_argument("--mapping-and-tagging", dest="mapping_and_tagging_path",
                        help="vst_mappingandtagging CSV, directory or NEON zip")
    parser.add_argument("--chm", dest="chm_path", help="Canopy height model GeoTIFF")
    parser.add_argument("--output-dir", dest="output_dir", help="Output directory")
    parser.add_argument("--crop-buffer", dest="crop_buffer_meters", type=float,
                        help="Buffer in meters around stems when cropping the CHM")
    parser.add_argument("--no-plot", dest="plot_enabled", action="store_false",
                        default=None, help="Skip the CHM plot")
    parser.add_argument("--log-level", dest="log_level",
                        help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Process exit status (0 on success, 1 on a workflow error)
    """
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if v is not None}
    config = settings.model_copy(update=overrides)

    configure_logging(config.log_level)
    logger.info(f"Log level: {config.log_level}")

    try:
        summary = asyncio.run(run_workflow(config))
    except (WoodyVegError, FileNotFoundError) as e:
        logger.error(f"Workflow failed: {e}")
        return 1

    logger.info(f"Done: {summary.within_extent_count} of {summary.complete_count} "
                f"located trees are within the CHM extent")
    return 0


if __name__ == "__main__":
    sys.exit(main())
