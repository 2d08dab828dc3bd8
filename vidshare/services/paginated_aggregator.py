# vidshare/services/paginated_aggregator.py
"""
Paginated Aggregator
Executes a pipeline as a count read plus a slice read

The two reads share no snapshot. A write landing between them can make
total_items disagree with the slice, or move a document across a page
boundary; callers get no stronger guarantee than that.
"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.app.config import Config
from vidshare.domain.models import PaginatedResult
from vidshare.domain.pipeline import Pipeline
from vidshare.infrastructure.pipeline import PipelineCompiler, PipelineExecutor
from vidshare.services.base_service import BaseService


class PaginatedAggregator(BaseService):
    """Runs pipelines with page/limit semantics and page metadata"""

    def __init__(
        self,
        session: AsyncSession,
        config: Optional[Config] = None,
        compiler: Optional[PipelineCompiler] = None,
    ):
        super().__init__(config=config)
        self.executor = PipelineExecutor(
            session,
            compiler=compiler,
            timeout_seconds=self.config.query.max_execution_seconds,
        )

    def get_service_name(self) -> str:
        return "aggregator"

    async def execute(
        self,
        pipeline: Pipeline,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
    ) -> PaginatedResult:
        """
        Count and slice a pipeline

        Args:
            pipeline: Pipeline from QueryPipelineBuilder
            page: 1-based page number, values below 1 read page 1
            limit: Page size, clamped to [1, pagination.max_limit]

        Returns:
            PaginatedResult with items and page metadata

        Raises:
            UpstreamTimeoutError: a read exceeded query.max_execution_seconds
            UpstreamUnavailableError: the store could not be reached
        """
        page, limit, skip = self.calculate_pagination(page, limit)

        try:
            total_items = await self.executor.count(pipeline)
            items = await self.executor.fetch(pipeline, skip=skip, limit=limit)
        except Exception as e:
            raise self.handle_error(
                e, f"{pipeline.collection} aggregation", {"page": page, "limit": limit}
            )

        self.log_debug(
            f"{pipeline.collection}: page {page} -> {len(items)} of {total_items} items"
        )
        return PaginatedResult.build(items, page, limit, total_items)

    async def fetch_one(self, pipeline: Pipeline) -> Optional[Dict[str, Any]]:
        """First document a pipeline yields, or None"""
        try:
            return await self.executor.fetch_first(pipeline)
        except Exception as e:
            raise self.handle_error(e, f"{pipeline.collection} lookup")
