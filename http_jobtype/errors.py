from typing import Optional


class HttpJobError(Exception):
    """Base class for all http job errors"""


class ConfigError(HttpJobError):
    """A required property is missing or holds an unsupported value"""


class ExecutionError(HttpJobError):
    """Transport failure or an HTTP status in the 4xx/5xx range"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.body = body


class EvaluationError(HttpJobError):
    def __init__(self, expression: str, message: str):
        super().__init__(f"JSONPath eval error for '{expression}': {message}")
        self.expression = expression


class PollExhausted(HttpJobError):
    def __init__(self, attempts: int, max_retries: int):
        super().__init__(
            f"Status check failed {max_retries + 1} times in a row after {attempts} attempts"
        )
        self.attempts = attempts
        self.max_retries = max_retries


class JobFailedError(HttpJobError):
    """Raised by HttpJob.run() for any non-success outcome"""


class JobCancelledError(JobFailedError):
    """Raised by HttpJob.run() when the job was cancelled"""
