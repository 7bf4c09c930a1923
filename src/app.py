"""
Main Application Entry Point.

This module serves as the entry point of the GitHub insights collection job.
It orchestrates one collection run:
- GitHub token retrieval from Secrets Manager
- GitHub client authentication
- Repository list loading from S3
- Concurrent insight collection
- Partitioned Parquet upload to S3

The run can be started from AWS Lambda (``handler``) or from the command line,
which also offers uploading the repository list and printing the Athena DDL.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import boto3

from config import Settings, settings, logger
from errors import ConfigurationError, InsightsError
from analyzers.multi_repository import InsightCollector
from analyzers.repository import InsightAnalyzer
from credentials.secret_store import SecretTokenProvider
from miners.base import RepositoryMiner
from miners.github_miner import GitHubMiner
from storage.catalog import monthly_average_query, table_ddl
from storage.insights_writer import ParquetInsightsWriter
from storage.repository_list import RepositoryListSource


def _s3_client(app_settings: Settings) -> Any:
    return boto3.client("s3", region_name=app_settings.aws_region)


def _secrets_client(app_settings: Settings) -> Any:
    return boto3.client("secretsmanager", region_name=app_settings.aws_region)


async def run_collection(
    app_settings: Settings = settings,
    s3_client: Any = None,
    secrets_client: Any = None,
    miner_factory: Callable[[str, Optional[str]], RepositoryMiner] = GitHubMiner,
) -> Dict[str, Any]:
    """
    Execute one collection run.

    Performs the following steps:
    1. Reads the GitHub token from Secrets Manager
    2. Authenticates the GitHub client
    3. Loads the repository list from S3
    4. Collects insights for every repository
    5. Uploads the batch as one Parquet object

    Args:
        app_settings (Settings): Configuration of the run
        s3_client: boto3 S3 client, created from settings if None
        secrets_client: boto3 Secrets Manager client, created from settings if None
        miner_factory: Builds the miner from a token and an API base URL

    Returns:
        Dict[str, Any]: Uploaded key, written record count and requested repository count

    Raises:
        ConfigurationError: If the secret name or bucket is not configured
        AuthError: If the token cannot be read or GitHub rejects it
        WriteError: If the batch cannot be uploaded

    Note:
        - Repositories that fail to fetch are logged and left out of the batch
        - A run where every repository failed still writes an empty file
    """
    if not app_settings.insights_bucket:
        raise ConfigurationError("INSIGHTS_BUCKET is not set")

    s3_client = s3_client or _s3_client(app_settings)
    secrets_client = secrets_client or _secrets_client(app_settings)

    logger.debug("retrieving github token...")
    token = SecretTokenProvider(
        secrets_client, app_settings.github_token_field
    ).get_token(app_settings.github_token_secret_name)

    logger.debug("authenticating github client...")
    miner = miner_factory(token, app_settings.github_base_url)
    await asyncio.to_thread(miner.authenticate)

    logger.debug("loading repository list...")
    repositories = RepositoryListSource(
        s3_client,
        app_settings.insights_bucket,
        app_settings.repositories_key,
        app_settings.strict_repository_list,
    ).load_repositories()

    logger.info("collecting repository insights...")
    collector = InsightCollector(
        miner, InsightAnalyzer(), app_settings.max_concurrent_repositories
    )
    insights = await collector.collect(repositories)

    logger.info("writing insights...")
    key = ParquetInsightsWriter(
        s3_client, app_settings.insights_bucket, app_settings.insights_prefix
    ).write(insights)

    logger.info(
        {
            "message": f"wrote {len(insights)} of {len(repositories)} repositories",
            "key": key,
        }
    )
    return {"key": key, "records": len(insights), "repositories": len(repositories)}


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entry point, invoked by the daily schedule."""
    try:
        return asyncio.run(run_collection())
    except Exception as e:
        logger.critical(
            {
                "message": "Error in collection run",
                "error_type": type(e).__name__,
                "error": str(e),
            }
        )
        raise


def upload_repository_list(path: str, app_settings: Settings = settings, s3_client: Any = None) -> None:
    """Upload a local repository list file to the insights bucket."""
    with open(path, "r", encoding="utf-8") as f:
        repositories = json.load(f)

    RepositoryListSource(
        s3_client or _s3_client(app_settings),
        app_settings.insights_bucket,
        app_settings.repositories_key,
    ).save_repositories(repositories)


def print_catalog(app_settings: Settings = settings) -> None:
    """Print the Athena table DDL and the current month's sample query."""
    if not app_settings.insights_bucket:
        raise ConfigurationError("INSIGHTS_BUCKET is not set")

    now = datetime.now(timezone.utc)
    print(table_ddl(app_settings.insights_bucket, prefix=app_settings.insights_prefix) + ";\n")
    print(monthly_average_query(now.year, now.month) + ";")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="github-insights",
        description="Collect GitHub repository insights into partitioned Parquet on S3.",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("collect", help="Run one collection (default)")
    upload_parser = subparsers.add_parser(
        "upload-repos", help="Upload the repository list JSON file"
    )
    upload_parser.add_argument("file", help="JSON array of {owner, repo} objects")
    subparsers.add_parser("ddl", help="Print the Athena table DDL and sample query")

    args = parser.parse_args(argv)

    try:
        if args.command == "upload-repos":
            upload_repository_list(args.file)
        elif args.command == "ddl":
            print_catalog()
        else:
            result = asyncio.run(run_collection())
            print(json.dumps(result))
    except InsightsError as e:
        logger.critical({"message": "Command failed", "error": str(e)})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
