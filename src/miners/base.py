"""
Abstract Base Class for Repository Miners.

Defines the interface for repository data mining implementations.
All repository miners (GitHub, GitLab, etc.) should implement this interface.
"""

from abc import ABC, abstractmethod

from miners.models import RepositoryData, RepositoryReference


class RepositoryMiner(ABC):
    """
    Abstract base class for repository miners.

    Defines the contract for mining repository data from different sources.
    Implementations should handle:
    - Authentication with the repository service
    - Data extraction
    - Data transformation to common models
    """

    @abstractmethod
    def authenticate(self) -> str:
        """
        Verify the configured credentials.

        Returns:
            str: Identity the credentials belong to

        Raises:
            AuthError: If the service rejects the credentials
        """
        pass

    @abstractmethod
    async def mine_repository(self, reference: RepositoryReference) -> RepositoryData:
        """
        Extract all relevant data from a repository.

        Args:
            reference (RepositoryReference): Repository owner and name

        Returns:
            RepositoryData: Collected repository data

        Raises:
            RepositoryFetchError: If any call for the repository fails
        """
        pass
