from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class HttpMethod(str, Enum):
    get = "GET"
    post = "POST"


class PollStatus(str, Enum):
    idle = "idle"
    polling = "polling"
    success = "success"
    failed = "failed"
    cancelled = "cancelled"


class Timeouts(BaseModel):
    """Resolved timeouts of one phase, in milliseconds"""

    model_config = ConfigDict(frozen=True)

    request: int
    connection: int
    socket: int


class HttpRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()
    body: Optional[str] = None


class ResponseOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: int
    reason: Optional[str] = None
    body: Optional[str] = None

    @property
    def is_transport_failure(self) -> bool:
        return 400 <= self.status < 600


class PollState(BaseModel):
    status: PollStatus = PollStatus.idle
    interval: int
    max_retries: int
    error_count: int = 0
    attempts: int = 0


class PollResult(BaseModel):
    status: PollStatus
    attempts: int
    body: Optional[str] = None
    error: Optional[Any] = None


class JobResult(BaseModel):
    job_id: str
    body: Optional[str] = None
    poll: Optional[PollResult] = None
    elapsed_time: float
