import asyncio

import aiohttp
from loguru import logger

from http_jobtype.errors import ExecutionError
from http_jobtype.models import HttpRequest, ResponseOutcome, Timeouts


def client_timeout(timeouts: Timeouts) -> aiohttp.ClientTimeout:
    """Map millisecond timeouts onto aiohttp's: pool acquisition, connect and read"""
    return aiohttp.ClientTimeout(
        connect=timeouts.request / 1000,
        sock_connect=timeouts.connection / 1000,
        sock_read=timeouts.socket / 1000,
    )


class Executor:
    def __init__(self, timeouts: Timeouts):
        self.timeout = client_timeout(timeouts)
        self.logger = logger

    async def execute(
        self, session: aiohttp.ClientSession, request: HttpRequest
    ) -> ResponseOutcome:
        """Send the request once and return its outcome.

        Raises ExecutionError for transport faults and 4xx/5xx statuses.
        """
        try:
            async with session.request(
                request.method.value,
                request.url,
                headers=list(request.headers),
                data=request.body,
                timeout=self.timeout,
            ) as response:
                text = await response.text(encoding="utf-8", errors="replace")
                outcome = ResponseOutcome(
                    status=response.status,
                    reason=response.reason,
                    body=text or None,
                )
            if outcome.body is None:
                self.logger.info("HTTP No response")
            else:
                self.logger.info(f"HTTP response [{outcome.body}]")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ExecutionError(
                f"HTTP execute error at {request.url}: {e!r}"
            ) from e

        if outcome.is_transport_failure:
            self.logger.error(
                f"HTTP error {outcome.status} at {request.url}: {outcome.reason}"
            )
            raise ExecutionError(
                f"HTTP execute error, status: {outcome.status}, message: {outcome.reason}",
                status=outcome.status,
                reason=outcome.reason,
                body=outcome.body,
            )
        return outcome
