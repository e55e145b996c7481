import asyncio
import json
from typing import Any, List, Optional, Sequence, Tuple

from aiohttp import web
from loguru import logger

Scripted = Tuple[int, Any]


class StatusServer:
    """Job endpoint that answers /submit and /status from scripted responses.

    Each route replays its script in order and repeats the last entry once
    the script runs out. A payload that is a str is sent as-is, anything
    else as JSON.
    """

    def __init__(
        self,
        submit_responses: Optional[Sequence[Scripted]] = None,
        status_responses: Optional[Sequence[Scripted]] = None,
    ):
        self.submit_responses: List[Scripted] = list(submit_responses or [(200, {"code": 1})])
        self.status_responses: List[Scripted] = list(status_responses or [(200, {"code": 1})])
        self.requests: List[dict] = []
        self.status_calls = 0
        self.status_delay = 0.0
        self.app = web.Application()
        self.app.router.add_route("*", "/submit", self.handle_submit)
        self.app.router.add_get("/status", self.handle_status)
        self.runner: Optional[web.AppRunner] = None
        self.logger = logger

    async def _record(self, request: web.Request) -> None:
        self.requests.append(
            {
                "path": request.path,
                "method": request.method,
                "headers": list(request.headers.items()),
                "body": await request.text(),
            }
        )

    def _respond(self, script: List[Scripted], index: int) -> web.Response:
        status, payload = script[min(index, len(script) - 1)]
        text = payload if isinstance(payload, str) else json.dumps(payload)
        self.logger.info(f"Returning {status} [{text}]")
        return web.Response(status=status, text=text, content_type="application/json")

    async def handle_submit(self, request):
        await self._record(request)
        submits = sum(1 for r in self.requests if r["path"] == "/submit")
        return self._respond(self.submit_responses, submits - 1)

    async def handle_status(self, request):
        await self._record(request)
        self.status_calls += 1
        if self.status_delay:
            await asyncio.sleep(self.status_delay)
        return self._respond(self.status_responses, self.status_calls - 1)

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
