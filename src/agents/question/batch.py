# -*- coding: utf-8 -*-
"""
Batch Coordinator
=================

Runs ``count`` independent orchestrator invocations for one request and
aggregates the results.

- Concurrency is bounded by ``max_concurrency`` (asyncio.Semaphore)
- A failed invocation is recorded in ``failures``; the batch carries on
- On timeout, unfinished invocations are cancelled and recorded as failures
- Questions are returned in index order
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from src.logging import get_logger

from .config import WorkflowSettings
from .exceptions import ConfigurationError
from .metadata import MetadataAggregator
from .models import BatchFailure, BatchResult, GeneratedQuestion, GenerationRequest
from .orchestrator import WorkflowOrchestrator

logger = get_logger("Question.Batch")

_shared_aggregator = MetadataAggregator()


class BatchCoordinator:
    def __init__(
        self,
        orchestrator: WorkflowOrchestrator,
        settings: Optional[WorkflowSettings] = None,
        aggregator: Optional[MetadataAggregator] = None,
    ):
        self.orchestrator = orchestrator
        self.settings = settings or orchestrator.settings
        self.aggregator = aggregator or _shared_aggregator

    def _check(self, request: GenerationRequest) -> None:
        if request.count > self.settings.max_batch_size:
            raise ConfigurationError(
                f"Requested {request.count} questions; the maximum per batch is "
                f"{self.settings.max_batch_size}",
                stage="batch",
            )
        self.orchestrator.validate_request(request)

    async def generate_batch(
        self, request: GenerationRequest, timeout: Optional[float] = None
    ) -> BatchResult:
        """
        Generate ``request.count`` questions.

        Args:
            request: Generation request
            timeout: Seconds for the whole batch. None falls back to
                ``batch_timeout_seconds`` from settings; 0 disables the limit

        Returns:
            BatchResult with ``requested`` vs ``delivered`` counts

        Raises:
            ConfigurationError: count above the batch maximum or request
                outside the curriculum
        """
        self._check(request)
        if timeout is None:
            timeout = self.settings.batch_timeout_seconds
        timeout = timeout or None
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        async def run_one(index: int) -> GeneratedQuestion:
            async with semaphore:
                return await self.orchestrator.run(request, index)

        start = time.perf_counter()
        tasks = [asyncio.create_task(run_one(i)) for i in range(request.count)]
        try:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
        finally:
            unfinished = [t for t in tasks if not t.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

        if pending:
            logger.warning(f"Batch timed out after {timeout}s; cancelled {len(pending)} run(s)")

        questions: list[GeneratedQuestion] = []
        failures: list[BatchFailure] = []
        for index, task in enumerate(tasks):
            if task in pending or task.cancelled():
                failures.append(
                    BatchFailure(
                        index=index,
                        error_type="TimeoutError",
                        message=f"Cancelled after batch timeout of {timeout}s",
                    )
                )
                continue
            error = task.exception()
            if error is not None:
                logger.error(f"Question #{index} failed: {error}")
                failures.append(
                    BatchFailure(index=index, error_type=type(error).__name__, message=str(error))
                )
                continue
            questions.append(task.result())

        result = BatchResult(
            questions=questions,
            metadata=self.aggregator.aggregate(questions),
            requested=request.count,
            delivered=len(questions),
            failures=failures,
        )
        logger.info(
            f"Batch {request.subject}/{request.topic}: {result.delivered}/{result.requested} "
            f"in {time.perf_counter() - start:.2f}s "
            f"(services: {result.metadata.service_distribution})"
        )
        return result


__all__ = ["BatchCoordinator"]
