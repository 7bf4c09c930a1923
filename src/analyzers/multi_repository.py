"""
Multi-Repository Collection Module.

This module collects insight records for many GitHub repositories concurrently.
It coordinates mining and analysis for each configured repository, handling:

- Bounded concurrent repository fetching
- Per-repository error isolation
- Logging of dropped repositories
"""

import asyncio
from typing import List, Optional

from config import logger
from analyzers.models import RepositoryInsight
from analyzers.repository import InsightAnalyzer
from miners.base import RepositoryMiner
from miners.models import RepositoryReference


class InsightCollector:
    """
    Coordinates the collection of insights for multiple GitHub repositories.

    A repository whose data cannot be fetched or analyzed is logged and left
    out of the batch; collection continues for the remaining repositories.

    Attributes:
        miner (RepositoryMiner): Instance for mining repository data.
        analyzer (InsightAnalyzer): Instance for deriving insight records.
        max_concurrency (int): Repositories processed at the same time.
    """

    def __init__(
        self,
        miner: RepositoryMiner,
        analyzer: InsightAnalyzer,
        max_concurrency: int = 4,
    ):
        """Initialize the collector.

        Args:
            miner (RepositoryMiner): Instance for mining repository data.
            analyzer (InsightAnalyzer): Instance for deriving insight records.
            max_concurrency (int): Repositories processed at the same time.
        """
        self.miner = miner
        self.analyzer = analyzer
        self.max_concurrency = max_concurrency

    async def _collect_one(
        self, reference: RepositoryReference, semaphore: asyncio.Semaphore
    ) -> Optional[RepositoryInsight]:
        async with semaphore:
            try:
                repo_data = await self.miner.mine_repository(reference)
                return self.analyzer.analyze_repository(repo_data)
            except Exception as e:
                logger.error(
                    {
                        "message": "Error fetching data for repository",
                        "repository": reference.full_name,
                        "error": str(e),
                    }
                )
                return None

    async def collect(
        self, repositories: List[RepositoryReference]
    ) -> List[RepositoryInsight]:
        """
        Collect insight records for all given repositories.

        Args:
            repositories (List[RepositoryReference]): Repositories to collect.

        Returns:
            List[RepositoryInsight]: Records of the repositories fetched
                successfully, in input order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._collect_one(reference, semaphore) for reference in repositories)
        )
        insights = [insight for insight in results if insight is not None]

        logger.info(
            {
                "message": "Repository collection finished",
                "collected": len(insights),
                "requested": len(repositories),
            }
        )
        return insights
