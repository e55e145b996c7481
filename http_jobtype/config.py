from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from http_jobtype.errors import ConfigError
from http_jobtype.models import Timeouts

STATUS_PREFIX = "status."


class PhaseConfig(BaseModel):
    """Properties of one request phase, read from the flat job namespace.

    The method is kept as the raw property value; it is checked when the
    request is built.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str
    method: str = "GET"
    headers: str = ""
    body: str = ""
    timeout: int = Field(3000, ge=0)
    request_timeout: Optional[int] = Field(None, alias="requestTimeout", ge=0)
    connection_timeout: Optional[int] = Field(None, alias="connectionTimeout", ge=0)
    socket_timeout: Optional[int] = Field(None, alias="socketTimeout", ge=0)
    success_eval: str = Field("", alias="successEval")
    fail_eval: str = Field("", alias="failEval")

    @classmethod
    def from_props(cls, props: Mapping[str, Any], prefix: str = ""):
        scoped = {
            key[len(prefix):]: value
            for key, value in props.items()
            if key.startswith(prefix) and value is not None
        }
        try:
            return cls.model_validate(scoped)
        except ValidationError as e:
            error = e.errors()[0]
            key = prefix + ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                raise ConfigError(f"Missing required property {key}") from e
            raise ConfigError(f"Invalid property {key}: {error['msg']}") from e

    def timeouts(self) -> Timeouts:
        def resolve(value: Optional[int]) -> int:
            return self.timeout if value is None else value

        return Timeouts(
            request=resolve(self.request_timeout),
            connection=resolve(self.connection_timeout),
            socket=resolve(self.socket_timeout),
        )


class StatusConfig(PhaseConfig):
    timeout: int = Field(30000, ge=0)
    interval: int = Field(1000, ge=0)
    max_retries: int = Field(3, alias="max-retries", ge=0)

    def validate_evals(self) -> None:
        if not self.success_eval:
            raise ConfigError(f"Configuration required {STATUS_PREFIX}successEval")
        if not self.fail_eval:
            raise ConfigError(f"Configuration required {STATUS_PREFIX}failEval")


class JobConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: PhaseConfig
    status: Optional[StatusConfig] = None

    @classmethod
    def from_props(cls, props: Mapping[str, Any]) -> "JobConfig":
        status = None
        if f"{STATUS_PREFIX}url" in props:
            status = StatusConfig.from_props(props, STATUS_PREFIX)
        return cls(primary=PhaseConfig.from_props(props), status=status)
