"""
Dataset harvesters.

Walk a paginated GitHub collection endpoint page by page until it is
exhausted, normalizing each raw record on the way.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from repo_harvester.client import GitHubClient
from repo_harvester.errors import RequestFailedError
from repo_harvester.models import (
    CommitRecord,
    ContributorRecord,
    linked_author_login,
    normalize_commit,
    normalize_contributor,
)
from repo_harvester.rate_limiter import QuotaTracker

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100  # GitHub API max


@dataclass
class HarvestResult:
    """Outcome of one harvest run."""
    dataset: str
    records: List[Any] = field(default_factory=list)
    excluded: int = 0
    pages_fetched: int = 0
    error: Optional[RequestFailedError] = None

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return [record.to_row() for record in self.records]


class DatasetHarvester(ABC):
    """
    Fetches every page of one collection endpoint.

    Pages are requested strictly one after another. A page shorter than
    the page size is the last one; an empty page or a failed request also
    ends the harvest, keeping whatever was collected so far.

    Subclasses set `dataset`, `columns` and `endpoint` and implement
    `normalize`; they may override `extra_params` and `exclude`.
    """

    dataset = "records"
    columns: tuple = ()
    endpoint = ""

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        quota: Optional[QuotaTracker] = None,
        per_page: int = MAX_PER_PAGE,
    ):
        """
        Initialize harvester.

        Args:
            client: GitHubClient used for every page request
            owner: Repository owner
            repo: Repository name
            quota: QuotaTracker to consult before each request (defaults to the client's)
            per_page: Records requested per page (1-100)
        """
        self.client = client
        self.owner = owner
        self.repo = repo
        self.quota = quota or client.quota
        self.per_page = max(1, min(per_page, MAX_PER_PAGE))

    @property
    def resource_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}/{self.endpoint}"

    def extra_params(self) -> Dict[str, Any]:
        return {}

    def exclude(self, raw: Dict[str, Any]) -> bool:
        """Return True to drop a raw record before normalization."""
        return False

    @abstractmethod
    def normalize(self, raw: Dict[str, Any]) -> Any:
        """Map one raw record to its flat record."""

    def harvest(self) -> HarvestResult:
        """
        Fetch and normalize every page.

        Returns:
            HarvestResult with records in API order
        """
        result = HarvestResult(dataset=self.dataset)
        page = 1

        while True:
            self.quota.wait_if_needed()

            params = {"per_page": self.per_page, "page": page, **self.extra_params()}
            logger.info(
                "Fetching %s page %d (requesting up to %d %s)...",
                self.dataset, page, self.per_page, self.dataset,
            )

            try:
                raw_page = self.client.fetch_list_page(self.resource_path, params)
            except RequestFailedError as e:
                logger.error("Error fetching %s: %s", self.dataset, e)
                result.error = e
                break

            result.pages_fetched += 1

            if not raw_page:
                logger.info("No more %s found on page %d", self.dataset, page)
                break

            self._fold(raw_page, result)

            # Decided on the unfiltered page length
            if len(raw_page) < self.per_page:
                logger.info("Reached the end of the %s", self.dataset)
                break

            page += 1

        return result

    def _fold(self, raw_page: List[Dict[str, Any]], result: HarvestResult) -> None:
        for raw in raw_page:
            if self.exclude(raw):
                result.excluded += 1
                continue
            result.records.append(self.normalize(raw))


class ContributorHarvester(DatasetHarvester):
    """All contributors, including those without a linked GitHub account."""

    dataset = "contributors"
    columns = ContributorRecord.COLUMNS
    endpoint = "contributors"

    def extra_params(self) -> Dict[str, Any]:
        return {"anon": 1}

    def normalize(self, raw: Dict[str, Any]) -> ContributorRecord:
        return normalize_contributor(raw)


class CommitHarvester(DatasetHarvester):
    """All commits, minus those authored by the configured bot account."""

    dataset = "commits"
    columns = CommitRecord.COLUMNS
    endpoint = "commits"

    def __init__(self, *args, bot_login: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.bot_login = bot_login

    def exclude(self, raw: Dict[str, Any]) -> bool:
        if not self.bot_login:
            return False
        return linked_author_login(raw) == self.bot_login

    def normalize(self, raw: Dict[str, Any]) -> CommitRecord:
        return normalize_commit(raw)
