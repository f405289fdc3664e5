"""
Harvest the full contributor and commit history of a GitHub repository.

Writes contributors.csv and commits.csv to the output directory.

Environment Variables:
    GITHUB_TOKEN: GitHub personal access token (optional, raises the rate limit)
    GITHUB_OWNER / GITHUB_REPO: Repository to harvest
    HARVEST_OUTPUT_DIR: Output directory (default: ./output)
    HARVEST_BOT_LOGIN: Bot account whose commits are dropped (default: dependabot[bot])

Examples:
    python harvest_repository.py --repo octocat/Hello-World
    python harvest_repository.py --owner octocat --repo Hello-World --output-dir data
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from repo_harvester.pipeline import HarvesterConfig, HarvestPipeline


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Harvest contributors and commits of a GitHub repository to CSV"
    )
    parser.add_argument("--owner", help="Repository owner (default: $GITHUB_OWNER)")
    parser.add_argument(
        "--repo", help="Repository name or owner/name (default: $GITHUB_REPO)"
    )
    parser.add_argument("--token", help="GitHub token (default: $GITHUB_TOKEN)")
    parser.add_argument(
        "--output-dir", help="Output directory (default: $HARVEST_OUTPUT_DIR or ./output)"
    )
    parser.add_argument(
        "--bot-login",
        help="Drop commits authored by this account (default: dependabot[bot])",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    config = HarvesterConfig.from_env(
        owner=args.owner,
        repo=args.repo,
        github_token=args.token,
        output_dir=args.output_dir,
        bot_login=args.bot_login,
    )
    if not config.owner or not config.repo:
        logging.getLogger(__name__).error(
            "Repository not set. Use --repo owner/name or GITHUB_OWNER and GITHUB_REPO"
        )
        return 2

    report = HarvestPipeline(config).run()
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
