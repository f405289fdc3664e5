"""
Harvest pipeline orchestrator.

Harvests the contributors and then the commits of one repository and
writes each dataset to its own CSV file.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from repo_harvester.client import GitHubClient, usable_token
from repo_harvester.errors import ExportError
from repo_harvester.harvester import (
    MAX_PER_PAGE,
    CommitHarvester,
    ContributorHarvester,
    DatasetHarvester,
    HarvestResult,
)
from repo_harvester.rate_limiter import QuotaTracker
from repo_harvester.storage import CsvExporter

logger = logging.getLogger(__name__)

DEFAULT_BOT_LOGIN = "dependabot[bot]"


@dataclass
class HarvesterConfig:
    """Configuration for a harvest run."""
    owner: str
    repo: str
    github_token: Optional[str] = None
    output_dir: Path = field(default_factory=lambda: Path("output"))
    contributors_file: str = "contributors.csv"
    commits_file: str = "commits.csv"
    bot_login: Optional[str] = DEFAULT_BOT_LOGIN
    per_page: int = MAX_PER_PAGE
    rate_limit_threshold: int = 10
    rate_limit_buffer_seconds: float = 10.0
    request_timeout: float = 30

    def __post_init__(self):
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        if "/" in self.repo:
            self.owner, self.repo = self.repo.split("/", 1)
        self.per_page = max(1, min(self.per_page, MAX_PER_PAGE))
        self.github_token = usable_token(self.github_token)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_env(cls, **overrides) -> "HarvesterConfig":
        """
        Build config from environment variables.

        GITHUB_OWNER, GITHUB_REPO, GITHUB_TOKEN, HARVEST_OUTPUT_DIR and
        HARVEST_BOT_LOGIN are read; keyword overrides that are not None win.
        An empty HARVEST_BOT_LOGIN disables bot filtering.
        """
        values = {
            "owner": os.getenv("GITHUB_OWNER", ""),
            "repo": os.getenv("GITHUB_REPO", ""),
            "github_token": os.getenv("GITHUB_TOKEN"),
            "output_dir": Path(os.getenv("HARVEST_OUTPUT_DIR", "output")),
            "bot_login": os.getenv("HARVEST_BOT_LOGIN", DEFAULT_BOT_LOGIN) or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class DatasetReport:
    """What happened to one dataset."""
    dataset: str
    records: int
    excluded: int
    path: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class PipelineReport:
    datasets: Dict[str, DatasetReport] = field(default_factory=dict)

    @property
    def written_files(self) -> List[Path]:
        return [r.path for r in self.datasets.values() if r.path is not None]

    @property
    def ok(self) -> bool:
        return all(r.error is None for r in self.datasets.values())


class HarvestPipeline:
    """
    Runs both harvests in sequence.

    One QuotaTracker is shared by the client and both harvesters. A failure
    in one dataset never stops the other.
    """

    def __init__(
        self,
        config: HarvesterConfig,
        client: Optional[GitHubClient] = None,
        exporter: Optional[CsvExporter] = None,
    ):
        """
        Initialize harvest pipeline.

        Args:
            config: HarvesterConfig with settings
            client: GitHubClient (built from config if None)
            exporter: CsvExporter (writes to config.output_dir if None)
        """
        self.config = config

        if client is None:
            quota = QuotaTracker(
                pause_threshold=config.rate_limit_threshold,
                buffer_seconds=config.rate_limit_buffer_seconds,
            )
            client = GitHubClient(
                token=config.github_token, quota=quota, timeout=config.request_timeout
            )
        self.client = client
        self.quota = client.quota
        self.exporter = exporter or CsvExporter(config.output_dir)

        self.contributors = ContributorHarvester(
            self.client, config.owner, config.repo, quota=self.quota, per_page=config.per_page
        )
        self.commits = CommitHarvester(
            self.client,
            config.owner,
            config.repo,
            quota=self.quota,
            per_page=config.per_page,
            bot_login=config.bot_login,
        )

    def run(self) -> PipelineReport:
        logger.info("Starting GitHub repository data fetch for %s", self.config.full_name)
        if self.client.authenticated:
            logger.info("Using GitHub Personal Access Token for authentication")
        else:
            logger.warning(
                "Making unauthenticated requests: GITHUB_TOKEN is not set. "
                "You may hit rate limits very quickly"
            )

        report = PipelineReport()
        report.datasets["contributors"] = self.run_dataset(
            self.contributors, self.config.contributors_file
        )
        report.datasets["commits"] = self.run_dataset(
            self.commits, self.config.commits_file
        )

        logger.info("Finished fetching and writing all data")
        if report.written_files:
            logger.info("Output files: %s", ", ".join(str(p) for p in report.written_files))
        return report

    def run_dataset(self, harvester: DatasetHarvester, filename: str) -> DatasetReport:
        """Harvest one dataset and export it if anything was collected."""
        name = harvester.dataset
        if isinstance(harvester, CommitHarvester) and harvester.bot_login:
            logger.info(
                "Fetching all %s for %s (filtering out %s)...",
                name, self.config.full_name, harvester.bot_login,
            )
        else:
            logger.info("Fetching all %s for %s...", name, self.config.full_name)

        result: HarvestResult = harvester.harvest()
        report = DatasetReport(
            dataset=name,
            records=len(result.records),
            excluded=result.excluded,
            error=str(result.error) if result.error else None,
        )

        if result.excluded:
            logger.info(
                "Filtered out %d %s by %s",
                result.excluded, name, getattr(harvester, "bot_login", None),
            )

        if not result.records:
            logger.info("No %s were processed", name)
            logger.info("-" * 50)
            return report

        logger.info("Fetched a total of %d %s", len(result.records), name)
        try:
            report.path = self.exporter.export(filename, result.rows, harvester.columns)
        except ExportError as e:
            logger.error("Error writing %s CSV to %s: %s", name, e.path, e.cause)
            report.error = str(e)
        else:
            logger.info("All %s data successfully saved to %s", name, report.path)

        logger.info("-" * 50)
        return report
