"""
Registration-number range planning.

A registration number is ``<cohort year:2><institute/branch code><serial:3>``.
Regular students occupy one serial block and lateral-entry students a separate
reserved block, numbered under the following cohort year.
"""

import logging
from typing import List, Tuple

from .config_manager import ScraperSettings
from .exceptions import ValidationError
from .models import BatchRequest


REGULAR = "regular"
LATERAL = "lateral"


class BatchPlanner:
    """Derives the registration numbers to query from a single seed number."""

    def __init__(self, settings: ScraperSettings):
        self.batch_size = settings.batch_size
        self.regular_range = settings.regular_range
        self.lateral_range = settings.lateral_range
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def split_registration_no(registration_no: str) -> Tuple[str, int]:
        """Split into the prefix and the integer value of the last 3 digits."""
        registration_no = (registration_no or "").strip()
        suffix = registration_no[-3:]
        if len(registration_no) <= 3 or not suffix.isdigit():
            raise ValidationError("Invalid last 3 digits of registration number.")
        return registration_no[:-3], int(suffix)

    @staticmethod
    def shift_cohort_year(prefix: str, delta: int) -> str:
        """Move the two-digit cohort year at the start of a prefix by ``delta``."""
        year = prefix[:2]
        if len(year) != 2 or not year.isdigit():
            raise ValidationError(f"Registration number prefix has no cohort year: {prefix}")
        shifted = int(year) + delta
        if not 0 <= shifted <= 99:
            raise ValidationError(f"Cohort year out of range when shifting {year} by {delta}")
        return f"{shifted:02d}{prefix[2:]}"

    def classify(self, serial: int) -> str:
        if self.regular_range[0] <= serial <= self.regular_range[1]:
            return REGULAR
        if self.lateral_range[0] <= serial <= self.lateral_range[1]:
            return LATERAL
        raise ValidationError("Invalid last 3 digits of registration number.")

    def _chunk(self, prefix: str, bounds: Tuple[int, int]) -> List[BatchRequest]:
        low, high = bounds
        return [
            BatchRequest(prefix, start, min(self.batch_size, high - start + 1))
            for start in range(low, high + 1, self.batch_size)
        ]

    def plan_batch(self, registration_no: str) -> BatchRequest:
        """Single sub-batch starting at the given number."""
        prefix, start = self.split_registration_no(registration_no)
        return BatchRequest(prefix, start, self.batch_size)

    def plan_roster(self, registration_no: str) -> List[BatchRequest]:
        """
        Sub-batches covering the seed's own block and the adjacent block of
        the other admission track.

        Raises:
            ValidationError: If the last 3 digits fall in neither block or the
            cohort year cannot be shifted
        """
        prefix, serial = self.split_registration_no(registration_no)
        track = self.classify(serial)

        if track == REGULAR:
            blocks = [(prefix, self.regular_range),
                      (self.shift_cohort_year(prefix, 1), self.lateral_range)]
        else:
            blocks = [(prefix, self.lateral_range),
                      (self.shift_cohort_year(prefix, -1), self.regular_range)]

        requests = []
        for block_prefix, bounds in blocks:
            requests.extend(self._chunk(block_prefix, bounds))

        self.logger.info(f"Planned {len(requests)} sub-batches for {registration_no} ({track})")
        return requests
