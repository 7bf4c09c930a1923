"""
Repository List Storage Module.

Loads the list of monitored repositories from object storage and uploads new
lists. The list is a JSON array of ``{"owner": ..., "repo": ...}`` objects
stored under a well-known key of the insights bucket.

When the list cannot be read or parsed, the loader degrades to a single
default repository instead of failing the run, unless strict mode is enabled.
"""

import json
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from config import logger
from errors import ConfigurationError
from miners.models import RepositoryReference

DEFAULT_REPOSITORY = RepositoryReference(owner="aws-samples", repo="anthropic-on-aws")

_repository_list = TypeAdapter(List[RepositoryReference])


class RepositoryListSource:
    """
    Reads and writes the monitored repository list.

    Attributes:
        client: boto3 S3 client
        bucket (Optional[str]): Bucket holding the list
        key (str): Object key of the list
        strict (bool): Raise instead of falling back to the default repository
    """

    def __init__(
        self,
        client: Any,
        bucket: Optional[str],
        key: str = "repositories.json",
        strict: bool = False,
    ):
        """Initialize the repository list source.

        Args:
            client: boto3 ``s3`` client.
            bucket (Optional[str]): Bucket holding the list.
            key (str): Object key of the list.
            strict (bool): Raise ConfigurationError instead of falling back.
        """
        self.client = client
        self.bucket = bucket
        self.key = key
        self.strict = strict

    def _fallback_repositories(self, error: Exception) -> List[RepositoryReference]:
        """Degrade to the default repository when the list is unavailable."""
        if self.strict:
            raise ConfigurationError(
                f"Repository list s3://{self.bucket}/{self.key} is unavailable"
            ) from error

        logger.error(
            {
                "message": "Error retrieving repositories from S3, using default repository",
                "bucket": self.bucket,
                "key": self.key,
                "repository": DEFAULT_REPOSITORY.full_name,
                "error": str(error),
            }
        )
        return [DEFAULT_REPOSITORY]

    def load_repositories(self) -> List[RepositoryReference]:
        """
        Load the repositories to monitor.

        Returns:
            List[RepositoryReference]: Repositories from the list object, or the
                default repository if the object is missing or unparsable.

        Raises:
            ConfigurationError: In strict mode, if the list is unavailable.
        """
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key)
            body = response["Body"].read().decode("utf-8")
            repositories = _repository_list.validate_python(json.loads(body))
        except Exception as e:
            return self._fallback_repositories(e)

        logger.info(
            {
                "message": "Loaded repository list",
                "key": self.key,
                "repositories": [reference.full_name for reference in repositories],
            }
        )
        return repositories

    def save_repositories(self, repositories: List[Any]) -> List[RepositoryReference]:
        """
        Validate and upload a repository list.

        Args:
            repositories (List[Any]): Raw ``{"owner", "repo"}`` entries.

        Returns:
            List[RepositoryReference]: The validated list that was uploaded.

        Raises:
            ConfigurationError: If the bucket is unset or the list is invalid.
        """
        if not self.bucket:
            raise ConfigurationError("INSIGHTS_BUCKET is not set")

        try:
            references = _repository_list.validate_python(repositories)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid repository list: {e}") from e

        body = _repository_list.dump_json(references, indent=2)
        self.client.put_object(
            Bucket=self.bucket,
            Key=self.key,
            Body=body,
            ContentType="application/json",
        )

        logger.info(
            {
                "message": "Repository list uploaded",
                "bucket": self.bucket,
                "key": self.key,
                "count": len(references),
            }
        )
        return references
