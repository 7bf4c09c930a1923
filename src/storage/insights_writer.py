"""
Insights Parquet Storage Module.

Serializes an insight batch into a single Parquet object and uploads it to S3
under a date-partitioned key:

    github-insights/year=YYYY/month=MM/day=DD/insights_<timestamp>.parquet

The partition values and the timestamp come from the same UTC instant, so
repeated runs on one day land in the same partition under distinct names.
"""

import io
from datetime import datetime, timezone
from typing import Any, List, Optional

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from config import logger
from errors import WriteError
from analyzers.models import RepositoryInsight

INSIGHTS_SCHEMA = pa.schema(
    [
        ("repoName", pa.string()),
        ("description", pa.string()),
        ("stars", pa.int64()),
        ("forks", pa.int64()),
        ("openIssues", pa.int64()),
        ("closedIssues", pa.int64()),
        ("openPullRequests", pa.int64()),
        ("mergedPullRequests", pa.int64()),
        ("closedPullRequests", pa.int64()),
        ("watchers", pa.int64()),
        ("language", pa.string()),
        ("topics", pa.list_(pa.string())),
        ("license", pa.string()),
        ("size", pa.int64()),
        ("createdAt", pa.string()),
        ("updatedAt", pa.string()),
        ("pushedAt", pa.string()),
        ("latestRelease", pa.string()),
        ("latestReleaseDate", pa.string()),
        ("contributorsCount", pa.int64()),
        ("commitsLastWeek", pa.int64()),
        ("commitsLastMonth", pa.int64()),
        ("averageTimeToMergePR", pa.float64()),
        ("averageTimeToClosePR", pa.float64()),
        ("averageTimeToCloseIssue", pa.float64()),
        ("date", pa.string()),
    ]
)


def iso_timestamp(now: datetime) -> str:
    """UTC ISO-8601 timestamp with millisecond precision, e.g. 2024-05-01T00:00:00.123Z."""
    now = now.astimezone(timezone.utc)
    return f"{now.strftime('%Y-%m-%dT%H:%M:%S')}.{now.microsecond // 1000:03d}Z"


def insights_key(now: datetime, prefix: str = "github-insights") -> str:
    """
    Build the partitioned object key for a run.

    Args:
        now (datetime): Write time
        prefix (str): Key prefix of the insights table

    Returns:
        str: Object key
    """
    now = now.astimezone(timezone.utc)
    timestamp = iso_timestamp(now).replace(":", "").replace(".", "")
    return (
        f"{prefix}/year={now.year:04d}/month={now.month:02d}/day={now.day:02d}"
        f"/insights_{timestamp}.parquet"
    )


def to_table(batch: List[RepositoryInsight], run_date: str) -> pa.Table:
    """
    Convert a batch into an Arrow table with the fixed insights schema.

    Args:
        batch (List[RepositoryInsight]): Insight records
        run_date (str): Run date as YYYY-MM-DD

    Returns:
        pa.Table: Table conforming to INSIGHTS_SCHEMA
    """
    if not batch:
        return INSIGHTS_SCHEMA.empty_table()

    rows = [{**insight.model_dump(by_alias=True), "date": run_date} for insight in batch]
    df = pd.DataFrame(rows, columns=INSIGHTS_SCHEMA.names)
    return pa.Table.from_pandas(df, schema=INSIGHTS_SCHEMA, preserve_index=False)


class ParquetInsightsWriter:
    """
    Writes insight batches to S3 as Parquet.

    Attributes:
        client: boto3 S3 client
        bucket (Optional[str]): Destination bucket
        prefix (str): Key prefix of the insights table
    """

    def __init__(self, client: Any, bucket: Optional[str], prefix: str = "github-insights"):
        """Initialize the writer.

        Args:
            client: boto3 ``s3`` client.
            bucket (Optional[str]): Destination bucket.
            prefix (str): Key prefix of the insights table.
        """
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def write(self, batch: List[RepositoryInsight], now: Optional[datetime] = None) -> str:
        """
        Serialize and upload one batch.

        Args:
            batch (List[RepositoryInsight]): Records of this run
            now (Optional[datetime]): Write time, current UTC time if None

        Returns:
            str: Key of the uploaded object

        Raises:
            WriteError: If the bucket is unset, or serialization or upload fails
        """
        if not self.bucket:
            raise WriteError("INSIGHTS_BUCKET is not set")

        now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        key = insights_key(now, self.prefix)

        try:
            table = to_table(batch, now.strftime("%Y-%m-%d"))
            buffer = io.BytesIO()
            pq.write_table(table, buffer, compression="snappy")

            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=buffer.getvalue(),
                ContentType="application/octet-stream",
            )
        except Exception as e:
            logger.error(
                {
                    "message": "Failed to upload insights",
                    "bucket": self.bucket,
                    "key": key,
                    "error": str(e),
                }
            )
            raise WriteError(f"Failed to upload insights to s3://{self.bucket}/{key}") from e

        logger.info(
            {
                "message": "Successfully uploaded insights to S3",
                "bucket": self.bucket,
                "key": key,
                "records": len(batch),
            }
        )
        return key
