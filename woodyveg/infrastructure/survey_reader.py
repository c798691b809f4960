"""
Infrastructure layer: reading the NEON mapping and tagging table.

Accepts the stacked ``vst_mappingandtagging.csv`` file, a directory that
contains it, or the zip archive downloaded from the NEON data portal (which
holds one nested zip per site and month).
"""
import io
import logging
import zipfile
from fnmatch import fnmatch
from pathlib import Path
from typing import IO, List, Union

import pandas as pd

from woodyveg.domain.exceptions import MissingColumnsError
from woodyveg.domain.models import SurveyRecord

logger = logging.getLogger(__name__)


TABLE_PATTERN = "*vst_mappingandtagging*.csv"

REQUIRED_COLUMNS = [
    "uid",
    "individualID",
    "scientificName",
    "taxonID",
    "namedLocation",
    "pointID",
    "stemDistance",
    "stemAzimuth",
]

IDENTIFIER_COLUMNS = {
    "uid": str,
    "individualID": str,
    "scientificName": str,
    "taxonID": str,
    "namedLocation": str,
    "pointID": str,
}


def _read_csv(source: Union[str, Path, IO[bytes]]) -> pd.DataFrame:
    return pd.read_csv(source, dtype=IDENTIFIER_COLUMNS)


def _tables_from_zip(archive: zipfile.ZipFile) -> List[pd.DataFrame]:
    tables = []
    for name in sorted(archive.namelist()):
        base = name.rsplit("/", 1)[-1]
        if fnmatch(base, TABLE_PATTERN):
            logger.debug(f"Reading {name} from archive")
            with archive.open(name) as member:
                tables.append(_read_csv(member))
        elif base.lower().endswith(".zip"):
            with zipfile.ZipFile(io.BytesIO(archive.read(name))) as nested:
                tables.extend(_tables_from_zip(nested))
    return tables


def load_mapping_and_tagging_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load the mapping and tagging table as a DataFrame.

    Args:
        path: CSV file, directory containing it, or NEON zip archive

    Returns:
        DataFrame with at least the required columns

    Raises:
        FileNotFoundError: If no mapping and tagging table can be found
        MissingColumnsError: If required columns are absent
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mapping and tagging data not found: {path}")

    if path.is_dir():
        tables = [_read_csv(p) for p in sorted(path.rglob(TABLE_PATTERN))]
    elif zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as archive:
            tables = _tables_from_zip(archive)
    else:
        tables = [_read_csv(path)]

    if not tables:
        raise FileNotFoundError(f"No {TABLE_PATTERN} table found in {path}")

    table = pd.concat(tables, ignore_index=True) if len(tables) > 1 else tables[0]
    missing = set(REQUIRED_COLUMNS) - set(table.columns)
    if missing:
        raise MissingColumnsError(missing, source=str(path))

    logger.info(f"Loaded {len(table)} mapping and tagging rows from {path}")
    return table


def records_from_table(table: pd.DataFrame) -> list[SurveyRecord]:
    """
    Convert a mapping and tagging DataFrame to survey records.

    Every column is carried; those beyond the required ones become extra
    record attributes. NaN cells become None; non-numeric distances/azimuths
    become None.

    Raises:
        MissingColumnsError: If required columns are absent
    """
    missing = set(REQUIRED_COLUMNS) - set(table.columns)
    if missing:
        raise MissingColumnsError(missing)

    rows = table.astype(object).where(table.notna(), None).to_dict(orient="records")
    return [SurveyRecord(**row) for row in rows]


def read_mapping_and_tagging(path: Union[str, Path]) -> list[SurveyRecord]:
    """Read survey records from a mapping and tagging CSV, directory or zip."""
    return records_from_table(load_mapping_and_tagging_table(path))
