# vidshare/infrastructure/pipeline/executor.py
"""
Pipeline Executor
Runs compiled pipelines on an AsyncSession with a per-query time limit
and turns flat result rows back into nested documents
"""

import asyncio
import logging
import time
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.domain.pipeline import Pipeline
from .compiler import LABEL_SEPARATOR, PipelineCompiler

logger = logging.getLogger(__name__)


def reshape_row(row: Mapping[str, Any], boolean_labels: FrozenSet[str] = frozenset()) -> Dict[str, Any]:
    """
    Rebuild nested documents from flat labels

    {"owner__username": "ana", "title": "x"} -> {"owner": {"username": "ana"}, "title": "x"}
    """
    document: Dict[str, Any] = {}
    for label, value in row.items():
        if label in boolean_labels:
            value = bool(value)
        parts = label.split(LABEL_SEPARATOR)
        target = document
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return document


class PipelineExecutor:
    """
    Executes pipelines against the database

    Raises asyncio.TimeoutError when a statement runs past timeout_seconds;
    database errors propagate unchanged.
    """

    def __init__(
        self,
        session: AsyncSession,
        compiler: Optional[PipelineCompiler] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.session = session
        self.compiler = compiler or PipelineCompiler()
        self.timeout_seconds = timeout_seconds

    async def _execute(self, statement, description: str):
        started = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                self.session.execute(statement), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"⏱️ {description} exceeded {self.timeout_seconds}s and was abandoned"
            )
            raise
        logger.debug(
            f"📊 {description} took {(time.perf_counter() - started) * 1000:.1f}ms"
        )
        return result

    async def fetch(
        self, pipeline: Pipeline, skip: int = 0, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Run the full pipeline, returning one nested dict per row"""
        compiled = self.compiler.compile(pipeline)
        statement = compiled.statement
        if skip:
            statement = statement.offset(skip)
        if limit is not None:
            statement = statement.limit(limit)

        result = await self._execute(statement, f"{pipeline.collection} fetch")
        return [
            reshape_row(row, compiled.boolean_labels) for row in result.mappings().all()
        ]

    async def fetch_first(self, pipeline: Pipeline) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(pipeline, limit=1)
        return rows[0] if rows else None

    async def count(self, pipeline: Pipeline) -> int:
        """Number of documents the pipeline selects, ignoring order and shape"""
        statement = self.compiler.compile_count(pipeline)
        result = await self._execute(statement, f"{pipeline.collection} count")
        return int(result.scalar_one())
