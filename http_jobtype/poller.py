import asyncio
import inspect
import threading
from typing import Any, Callable, Optional

import aiohttp
from loguru import logger

from http_jobtype.config import STATUS_PREFIX, StatusConfig
from http_jobtype.errors import ExecutionError, PollExhausted
from http_jobtype.evaluator import matches
from http_jobtype.executor import Executor
from http_jobtype.models import PollResult, PollState, PollStatus
from http_jobtype.request_builder import RequestBuilder


class CancellationToken:
    """Cooperative cancellation flag whose sleeps wake up on cancel.

    cancel() may be called from any thread. The wake-up event is created per
    event loop, so the token survives successive asyncio.run() calls.
    """

    def __init__(self):
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread_id: Optional[int] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        loop, event = self._loop, self._event
        if loop is None or event is None or loop.is_closed():
            return
        if self._thread_id != threading.get_ident():
            loop.call_soon_threadsafe(event.set)
        else:
            event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for `seconds`; return True if woken early by cancellation"""
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            self._event = asyncio.Event()
            self._thread_id = threading.get_ident()
            self._loop = loop
        if self._cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return self._cancelled
        return True


class Poller:
    def __init__(
        self,
        config: StatusConfig,
        token: CancellationToken,
        on_status_change: Optional[Callable[[PollState], Any]] = None,
    ):
        """`on_status_change` may be a plain function or a coroutine function"""
        self.config = config
        self.token = token
        self.on_status_change = on_status_change
        self.state = PollState(interval=config.interval, max_retries=config.max_retries)
        self.logger = logger

    async def _transition(self, status: PollStatus) -> None:
        if self.state.status == status:
            return
        self.logger.debug(f"HTTP job status check {self.state.status.value} -> {status.value}")
        self.state.status = status
        if self.on_status_change is not None:
            result = self.on_status_change(self.state.model_copy())
            if inspect.isawaitable(result):
                await result

    async def _resolve(self, status: PollStatus, body=None, error=None) -> PollResult:
        await self._transition(status)
        return PollResult(status=status, attempts=self.state.attempts, body=body, error=error)

    async def poll(self) -> PollResult:
        """Poll the status endpoint until an eval matches, errors run out or the job is cancelled"""
        self.config.validate_evals()
        success_eval = self.config.success_eval
        fail_eval = self.config.fail_eval
        request = RequestBuilder(self.config, STATUS_PREFIX).build()
        executor = Executor(self.config.timeouts())

        self.logger.info(
            f"HTTP check status interval:{self.state.interval}, "
            f"successEval:{success_eval}, failEval:{fail_eval}"
        )
        await self._transition(PollStatus.polling)

        async with aiohttp.ClientSession() as session:
            while not self.token.is_cancelled:
                self.logger.debug(f"Waiting {self.state.interval}ms before next status check")
                if await self.token.sleep(self.state.interval / 1000):
                    break
                self.state.attempts += 1
                outcome, error = None, None
                try:
                    outcome = await executor.execute(session, request)
                except ExecutionError as e:
                    self.logger.info(f"HTTP job status check error: {e}")
                    error = e
                self.logger.info(f"HTTP job status checked {self.state.attempts} times")

                # A cancel that arrived during the request wins over its result
                if self.token.is_cancelled:
                    break

                if error is not None:
                    self.state.error_count += 1
                    if self.state.error_count > self.state.max_retries:
                        exhausted = PollExhausted(self.state.attempts, self.state.max_retries)
                        exhausted.__cause__ = error
                        return await self._resolve(PollStatus.failed, error=exhausted)
                    continue

                if matches(outcome.body, fail_eval):
                    return await self._resolve(PollStatus.failed, body=outcome.body)
                if matches(outcome.body, success_eval):
                    return await self._resolve(PollStatus.success, body=outcome.body)
                self.state.error_count = 0

        self.logger.info("HTTP job status check cancelled")
        return await self._resolve(PollStatus.cancelled)
