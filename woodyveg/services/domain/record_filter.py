"""
Domain service: completeness filtering of survey records.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from woodyveg.domain.models import SurveyRecord

logger = logging.getLogger(__name__)


def count_trees(records: Iterable[SurveyRecord]) -> int:
    """Number of distinct tree uids among the records."""
    return len({r.uid for r in records if r.uid is not None})


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


@dataclass
class FilterResult:
    """Records retained by the filter, with before/after counts."""
    records: list[SurveyRecord] = field(default_factory=list)
    input_count: int = 0
    input_tree_count: int = 0
    retained_tree_count: int = 0

    @property
    def retained_count(self) -> int:
        return len(self.records)

    @property
    def dropped_count(self) -> int:
        return self.input_count - self.retained_count


class RecordFilter:
    """Keeps records that have both a stem distance and a stem azimuth."""

    def is_complete(self, record: SurveyRecord) -> bool:
        return _is_finite(record.stem_distance) and _is_finite(record.stem_azimuth)

    def filter(self, records: Sequence[SurveyRecord]) -> FilterResult:
        """
        Drop records lacking a finite distance or azimuth.

        Args:
            records: Survey records from the mapping and tagging table

        Returns:
            FilterResult with the retained records and diagnostic counts
        """
        retained = [r for r in records if self.is_complete(r)]
        result = FilterResult(
            records=retained,
            input_count=len(records),
            input_tree_count=count_trees(records),
            retained_tree_count=count_trees(retained),
        )

        logger.info(f"There are {result.input_tree_count} trees in the mapping and tagging table")
        logger.info(f"There are {result.retained_tree_count} trees with location information")
        logger.debug(f"Dropped {result.dropped_count}/{result.input_count} records "
                     f"without stem distance and azimuth")
        return result
