"""
Tests for GitHub token retrieval from Secrets Manager.
"""

import json

import pytest
from unittest.mock import Mock
from botocore.exceptions import ClientError

from credentials.secret_store import SecretTokenProvider
from errors import AuthError, ConfigurationError


@pytest.fixture
def mock_client():
    """Create a mock Secrets Manager client."""
    client = Mock()
    client.get_secret_value.return_value = {
        "SecretString": json.dumps({"GITHUB_TOKEN": "ghp_test"})
    }
    return client


def test_get_token_success(mock_client):
    """Test the token is extracted from the JSON payload."""
    provider = SecretTokenProvider(mock_client)

    assert provider.get_token("/github_insights/github_token") == "ghp_test"
    mock_client.get_secret_value.assert_called_once_with(
        SecretId="/github_insights/github_token"
    )


@pytest.mark.parametrize("secret_id", [None, ""])
def test_get_token_missing_secret_id(mock_client, secret_id):
    """A missing secret id is a configuration error, the store is not called."""
    with pytest.raises(ConfigurationError):
        SecretTokenProvider(mock_client).get_token(secret_id)

    mock_client.get_secret_value.assert_not_called()


@pytest.mark.parametrize(
    "response",
    [
        {},
        {"SecretString": ""},
        {"SecretString": "not json"},
        {"SecretString": json.dumps({"OTHER": "value"})},
        {"SecretString": json.dumps({"GITHUB_TOKEN": ""})},
        {"SecretString": json.dumps(["ghp_test"])},
    ],
)
def test_get_token_invalid_payload(mock_client, response):
    """Missing or malformed secret payloads raise AuthError."""
    mock_client.get_secret_value.return_value = response

    with pytest.raises(AuthError):
        SecretTokenProvider(mock_client).get_token("secret")


def test_get_token_store_error(mock_client):
    """Errors from the store raise AuthError without retrying."""
    mock_client.get_secret_value.side_effect = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}},
        "GetSecretValue",
    )

    with pytest.raises(AuthError):
        SecretTokenProvider(mock_client).get_token("secret")

    assert mock_client.get_secret_value.call_count == 1


def test_get_token_custom_field(mock_client):
    """The token field name is configurable."""
    mock_client.get_secret_value.return_value = {
        "SecretString": json.dumps({"token": "ghp_custom"})
    }

    assert SecretTokenProvider(mock_client, token_field="token").get_token("s") == "ghp_custom"
