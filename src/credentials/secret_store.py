"""
GitHub Token Retrieval Module.

Reads the GitHub API token from AWS Secrets Manager. The secret payload is a
JSON document such as ``{"GITHUB_TOKEN": "ghp_..."}``.
"""

import json
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from config import logger
from errors import AuthError, ConfigurationError


class SecretTokenProvider:
    """
    Retrieves the GitHub token from a secret store.

    Attributes:
        client: boto3 Secrets Manager client
        token_field (str): JSON field of the secret holding the token
    """

    def __init__(self, client: Any, token_field: str = "GITHUB_TOKEN"):
        """Initialize the provider.

        Args:
            client: boto3 ``secretsmanager`` client.
            token_field (str): JSON field holding the token.
        """
        self.client = client
        self.token_field = token_field

    def get_token(self, secret_id: Optional[str]) -> str:
        """
        Fetch and extract the GitHub token.

        Args:
            secret_id (Optional[str]): Secret name or ARN

        Returns:
            str: GitHub API token

        Raises:
            ConfigurationError: If no secret id is configured
            AuthError: If the secret cannot be read or holds no token
        """
        if not secret_id:
            raise ConfigurationError("GITHUB_TOKEN_SECRET_NAME is not set")

        try:
            response = self.client.get_secret_value(SecretId=secret_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                {
                    "message": "Failed to read GitHub token secret",
                    "secret_id": secret_id,
                    "error": str(e),
                }
            )
            raise AuthError(f"Unable to read secret {secret_id}") from e

        secret_string = response.get("SecretString")
        if not secret_string:
            raise AuthError("GitHub token not found in Secrets Manager")

        try:
            secret_json = json.loads(secret_string)
        except json.JSONDecodeError as e:
            raise AuthError("GitHub token secret is not valid JSON") from e

        token = secret_json.get(self.token_field) if isinstance(secret_json, dict) else None
        if not token:
            raise AuthError(f"GitHub token not found in the secret field {self.token_field}")

        logger.debug({"message": "GitHub token retrieved", "secret_id": secret_id})
        return token
