import asyncio
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

import aiohttp
from loguru import logger

from http_jobtype.config import JobConfig
from http_jobtype.errors import ExecutionError, JobCancelledError, JobFailedError
from http_jobtype.evaluator import verdict
from http_jobtype.executor import Executor
from http_jobtype.models import JobResult, PollResult, PollState, PollStatus
from http_jobtype.poller import CancellationToken, Poller
from http_jobtype.request_builder import RequestBuilder


class HttpJob:
    """A job that sends one HTTP request and optionally polls a status endpoint.

    `props` is the flat job property namespace: `url`, `method`, `headers`,
    `body`, the timeouts and `successEval`/`failEval`, plus the same keys
    under `status.` when a status endpoint should be polled afterwards.
    """

    def __init__(
        self,
        job_id: str,
        props: Mapping[str, Any],
        on_status_change: Optional[Callable[[PollState], Any]] = None,
    ):
        self.job_id = job_id
        self.props = MappingProxyType(dict(props))
        self.on_status_change = on_status_change
        self.token = CancellationToken()
        self.logger = logger.bind(job_id=job_id)

    @property
    def is_cancelled(self) -> bool:
        return self.token.is_cancelled

    def cancel(self) -> None:
        self.logger.info(f"HTTP {self.job_id} cancel requested")
        self.token.cancel()

    async def _execute_primary(self, config: JobConfig) -> Optional[str]:
        request = RequestBuilder(config.primary).build()
        if self.is_cancelled:
            raise JobCancelledError(f"Job {self.job_id} cancelled")

        executor = Executor(config.primary.timeouts())
        async with aiohttp.ClientSession() as session:
            try:
                outcome = await executor.execute(session, request)
            except ExecutionError as e:
                raise JobFailedError(str(e)) from e

        if not verdict(outcome.body, config.primary.success_eval, config.primary.fail_eval):
            raise JobFailedError("Job execute failed")
        return outcome.body

    async def _check_status(self, config: JobConfig) -> PollResult:
        poller = Poller(config.status, self.token, self.on_status_change)
        result = await poller.poll()
        if result.status is PollStatus.cancelled:
            raise JobCancelledError(
                f"Job {self.job_id} cancelled after {result.attempts} status checks"
            )
        if result.status is PollStatus.failed:
            raise JobFailedError(
                f"Job status check failed after {result.attempts} attempts"
            ) from result.error
        return result

    async def run(self) -> JobResult:
        """Run the job; raise ConfigError or JobFailedError unless it succeeds"""
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        success = False
        try:
            config = JobConfig.from_props(self.props)
            body = await self._execute_primary(config)
            poll = None
            if config.status is not None:
                poll = await self._check_status(config)
            success = True
            return JobResult(
                job_id=self.job_id,
                body=body,
                poll=poll,
                elapsed_time=loop.time() - start_time,
            )
        finally:
            self.logger.info(
                f"HTTP {self.job_id} completed "
                f"{'successfully' if success else 'unsuccessfully'} in "
                f"{int(loop.time() - start_time)} seconds."
            )
