"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Provides centralized configuration management with type safety and validation.

Features:
- Environment variable loading and validation
- Secret and bucket identifiers for the collection run
- Logging level normalization
- Concurrency bound for repository collection
"""

import logging
from typing import Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logger import LogManager


class Settings(BaseSettings):
    """
    Application configuration settings with validation.

    Manages and validates all application settings including:
    - Application identification
    - Secret store and object storage identifiers
    - GitHub API endpoint
    - Logging settings
    - Collection behaviour

    The secret name and bucket are optional here so that modules can be imported
    without a full environment; the collection job raises ConfigurationError
    when either is missing at run time.

    Attributes:
        app_name (str): Name of the application
        dev (bool): Human-readable log output
        log_dir (Optional[str]): Directory for log files, console only if unset
        log_level (int): Logging level, accepts names such as "INFO"
        github_token_secret_name (Optional[str]): Secrets Manager secret id
        github_token_field (str): JSON field of the secret holding the token
        github_base_url (Optional[str]): GitHub Enterprise API URL
        insights_bucket (Optional[str]): Destination S3 bucket
        aws_region (Optional[str]): AWS region for the boto3 clients
        repositories_key (str): Object key of the repository list
        insights_prefix (str): Key prefix of the partitioned insights
        max_concurrent_repositories (int): Repositories collected at once
        strict_repository_list (bool): Fail instead of falling back to the default repository
    """

    # Application settings
    app_name: str = Field(default="github-insights", description="Application name")
    dev: bool = Field(default=False, description="Development log format")
    log_dir: Optional[str] = Field(default=None, description="Logging directory")
    log_level: int = Field(default=logging.INFO, description="Logging level")

    # GitHub configuration
    github_token_secret_name: Optional[str] = Field(
        default=None, description="Secrets Manager id of the GitHub token secret"
    )
    github_token_field: str = Field(
        default="GITHUB_TOKEN", description="Secret JSON field holding the token"
    )
    github_base_url: Optional[str] = Field(
        default=None, description="GitHub API base URL, public API if unset"
    )

    # AWS configuration
    insights_bucket: Optional[str] = Field(
        default=None, description="S3 bucket for repository list and insights"
    )
    aws_region: Optional[str] = Field(default=None, description="AWS region")
    repositories_key: str = Field(
        default="repositories.json", description="Object key of the repository list"
    )
    insights_prefix: str = Field(
        default="github-insights", description="Key prefix for insights objects"
    )

    # Collection configuration
    max_concurrent_repositories: int = Field(
        default=4, ge=1, description="Repositories collected concurrently"
    )
    strict_repository_list: bool = Field(
        default=False,
        description="Raise instead of using the default repository when the list cannot be read",
    )

    @field_validator("log_level", mode="before")
    def parse_log_level(cls, v: Union[str, int]) -> int:
        """
        Accept either a numeric level or a level name.

        Args:
            v (Union[str, int]): Raw level value

        Returns:
            int: Numeric logging level
        """
        if isinstance(v, str) and not v.strip().isdigit():
            level = logging.getLevelName(v.strip().upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {v}")
            return level
        return v

    # Configure env file loading
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )


# Create global settings instance
settings = Settings()

# Initialize logging configuration
logger = LogManager(
    app_name=settings.app_name.lower(),
    log_dir=settings.log_dir,
    development=settings.dev,
    level=settings.log_level,
).logger
