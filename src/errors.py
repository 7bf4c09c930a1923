"""
Collection Error Taxonomy.

Defines the exceptions raised by the insights collection workflow. Only
RepositoryFetchError is recovered locally (the repository is dropped from the
run); every other error aborts the run at the invocation boundary.
"""


class InsightsError(Exception):
    """Base class for all collection errors."""


class ConfigurationError(InsightsError):
    """A required setting is missing or invalid."""


class AuthError(InsightsError):
    """Credential retrieval or GitHub authentication failed."""


class RepositoryFetchError(InsightsError):
    """One repository's data could not be fully fetched."""

    def __init__(self, repository: str, cause: Exception):
        self.repository = repository
        self.cause = cause
        super().__init__(f"Failed to fetch {repository}: {cause}")


class WriteError(InsightsError):
    """The insights batch could not be written to object storage."""
