"""
Central orchestrator that coordinates planning, fetching and parsing.
Manages the batch workflow from a seed registration number to the flattened,
ordered list of result entries.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
from urllib.parse import urlencode

from .config_manager import ScraperSettings
from .exceptions import AggregateFailure, NetworkError
from .fetcher import ResultFetcher
from .models import (
    BatchRequest, ErrorEntry, FetchStatus, ResultEntry, Separator, SubBatchResult, entry_from_dict,
)
from .parser import ResultParser
from .planner import BatchPlanner


class ResultOrchestrator:
    """
    Central controller for result retrieval.
    Numbers inside one sub-batch are fetched sequentially; independent
    sub-batches are fanned out to a thread pool and joined in dispatch order.
    """

    def __init__(self, settings: ScraperSettings, fetcher: Optional[ResultFetcher] = None,
                 parser: Optional[ResultParser] = None, planner: Optional[BatchPlanner] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings
        self.fetcher = fetcher or ResultFetcher(settings)
        self.parser = parser or ResultParser(settings)
        self.planner = planner or BatchPlanner(settings)

    def build_result_url(self, year, semester: str, registration_no: str) -> str:
        base_url = self.settings.base_url_for(year)
        return f"{base_url}?{urlencode({'Sem': semester, 'RegNo': registration_no})}"

    def build_peer_url(self, year, semester: str, registration_no: str) -> str:
        return self.settings.peer_url_template.format(sem=semester, year=year, reg_no=registration_no)

    def run_batch(self, registration_no: str, year, semester: Optional[str] = None) -> List[ResultEntry]:
        """
        Fetch one sub-batch starting at ``registration_no``.

        Returns:
            Ordered entries: each found student followed by a separator, plus
            an error entry for every number whose retries were exhausted

        Raises:
            ValidationError: For an unsupported year or malformed number
            AggregateFailure: If every number in the batch failed
        """
        semester = semester or self.settings.default_semester
        self.settings.base_url_for(year)
        request = self.planner.plan_batch(registration_no)
        return self._run_request(request, year, semester)

    def _run_request(self, request: BatchRequest, year, semester: str) -> List[ResultEntry]:
        results: List[ResultEntry] = []
        numbers = request.registration_numbers()
        failures = 0

        for current in numbers:
            outcome = self.fetcher.fetch(self.build_result_url(year, semester, current))

            if outcome.status is FetchStatus.ERROR:
                failures += 1
                results.append(ErrorEntry(outcome.error))
                continue
            if outcome.status is FetchStatus.NOT_FOUND:
                continue

            result = self.parser.parse(outcome.document, current)
            if result is not None:
                results.append(result)
                results.append(Separator(self.settings.separator))

        if numbers and failures == len(numbers):
            raise AggregateFailure(
                f"All {failures} fetches failed for batch starting with reg_no: {request.first_registration_no}"
            )

        found = sum(1 for entry in results if isinstance(entry, Separator))
        self.logger.info(f"Batch {request.first_registration_no}: {found} found, {failures} failed "
                         f"out of {len(numbers)}")
        return results

    def _fetch_from_peer(self, request: BatchRequest, year, semester: str) -> List[ResultEntry]:
        first = request.first_registration_no
        try:
            payload = self.fetcher.fetch_json(self.build_peer_url(year, semester, first))
        except NetworkError as e:
            raise NetworkError(f"Failed to fetch data for batch starting with reg_no: {first}. Error: {e}")

        if isinstance(payload, dict):
            payload = [payload]
        return [entry_from_dict(item) for item in payload]

    def _dispatch(self, request: BatchRequest, year, semester: str) -> SubBatchResult:
        try:
            if self.settings.peer_url_template:
                entries = self._fetch_from_peer(request, year, semester)
            else:
                entries = self._run_request(request, year, semester)
            return SubBatchResult(request, tuple(entries))
        except Exception as e:
            self.logger.error(f"Error fetching batch {request.first_registration_no}: {e}")
            return SubBatchResult(request, error=str(e))

    def run_roster(self, registration_no: str, year, semester: Optional[str] = None) -> List[ResultEntry]:
        """
        Fetch the full roster around ``registration_no``: its own block plus
        the adjacent regular or lateral-entry block.

        Raises:
            ValidationError: For an unsupported year or an invalid seed number
            AggregateFailure: If every sub-batch failed
        """
        semester = semester or self.settings.default_semester
        self.settings.base_url_for(year)
        requests = self.planner.plan_roster(registration_no)

        with ThreadPoolExecutor(max_workers=max(1, self.settings.num_threads)) as executor:
            futures = [executor.submit(self._dispatch, request, year, semester) for request in requests]
            outcomes = [future.result() for future in futures]

        failed = [outcome for outcome in outcomes if outcome.failed]
        if outcomes and len(failed) == len(outcomes):
            raise AggregateFailure(f"All {len(failed)} sub-batches failed for {registration_no}")
        if failed:
            self.logger.warning(f"{len(failed)} of {len(outcomes)} sub-batches failed for {registration_no}")

        results: List[ResultEntry] = []
        for outcome in outcomes:
            results.extend(outcome.flatten())
        return results

    def close(self):
        self.fetcher.close()
