"""
GitHub repository history harvester.

This package walks the contributors and commits endpoints of a single
repository page by page, respecting the API rate limit, and writes each
dataset to a flat CSV file:
- QuotaTracker follows the rate limit reported by every response
- GitHubClient fetches one page per request
- ContributorHarvester / CommitHarvester normalize raw records
- CsvExporter writes the results
"""

from repo_harvester.client import GitHubClient
from repo_harvester.errors import ExportError, HarvestError, RequestFailedError
from repo_harvester.harvester import (
    CommitHarvester,
    ContributorHarvester,
    DatasetHarvester,
    HarvestResult,
)
from repo_harvester.pipeline import HarvesterConfig, HarvestPipeline, PipelineReport
from repo_harvester.rate_limiter import QuotaStatus, QuotaTracker
from repo_harvester.storage import CsvExporter, to_csv_text

__all__ = [
    "GitHubClient",
    "HarvestError",
    "RequestFailedError",
    "ExportError",
    "DatasetHarvester",
    "ContributorHarvester",
    "CommitHarvester",
    "HarvestResult",
    "HarvesterConfig",
    "HarvestPipeline",
    "PipelineReport",
    "QuotaTracker",
    "QuotaStatus",
    "CsvExporter",
    "to_csv_text",
]
