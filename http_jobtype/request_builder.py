from typing import List, Tuple

from loguru import logger

from http_jobtype.config import PhaseConfig
from http_jobtype.errors import ConfigError
from http_jobtype.models import HttpMethod, HttpRequest

HEADER_ELEMENT_DELIMITER = "\r\n"
HEADER_NAME_VALUE_DELIMITER = ":"


def parse_http_headers(headers: str) -> List[Tuple[str, str]]:
    """Parse a CRLF separated block of `Name:Value` lines.

    The first colon splits name from value; lines without a colon or with a
    blank name are dropped. Order is preserved.
    """
    if not headers:
        return []

    parsed = []
    for line in headers.split(HEADER_ELEMENT_DELIMITER):
        name, sep, value = line.partition(HEADER_NAME_VALUE_DELIMITER)
        if not sep or not name.strip():
            continue
        parsed.append((name.strip(), value.strip()))
    return parsed


def _has_control_character(text: str) -> bool:
    return any(char == "\x7f" or (ord(char) < 0x20 and char != "\t") for char in text)


class RequestBuilder:
    def __init__(self, config: PhaseConfig, prefix: str = ""):
        self.config = config
        self.prefix = prefix
        self.logger = logger

    def _method(self) -> HttpMethod:
        try:
            return HttpMethod(self.config.method)
        except ValueError:
            raise ConfigError(
                f"Unsupported request method for {self.prefix}method: {self.config.method}. "
                "Only POST and GET are supported"
            ) from None

    def build(self) -> HttpRequest:
        method = self._method()
        url = self.config.url
        self.logger.info(f"HTTP {method.value} url: {url}")

        body = None
        if method is HttpMethod.post and self.config.body:
            body = self.config.body
            self.logger.info(f"HTTP body: {body}")

        headers = parse_http_headers(self.config.headers)
        for name, value in headers:
            if _has_control_character(name) or _has_control_character(value):
                raise ConfigError(
                    f"Control character in {self.prefix}headers entry: {name!r}"
                )
        if headers:
            self.logger.info(f"HTTP headers size: {len(headers)}")

        return HttpRequest(method=method, url=url, headers=tuple(headers), body=body)
