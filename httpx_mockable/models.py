import enum
from collections import Counter
from functools import cached_property
from urllib.parse import SplitResult, parse_qsl, urlsplit

import httpx
from pydantic import BaseModel, ConfigDict

DEFAULT_PORTS = {"http": 80, "https": 443}

Headers = tuple[tuple[str, str], ...]


class Mode(enum.StrEnum):
    passthrough = "passthrough"
    record = "record"
    playback = "playback"
    # Resolved from the environment by the configuration layer
    env = "env"


class Unrecognized(enum.StrEnum):
    exception = "exception"
    null = "null"
    fallback = "fallback"


class _Frozen(BaseModel):
    # Bodies travel as base64 in the recording file, raw bytes in Python.
    model_config = ConfigDict(
        frozen=True, ser_json_bytes="base64", val_json_bytes="base64"
    )


class Request(_Frozen):
    method: str
    url: str
    headers: Headers = ()
    body: bytes = b""

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> "Request":
        # The request must have been read (request.read() / aread()) beforehand.
        return cls(
            method=request.method,
            url=str(request.url),
            headers=tuple(request.headers.multi_items()),
            body=request.content,
        )

    @cached_property
    def _url_parts(self) -> SplitResult:
        return urlsplit(self.url)

    @property
    def scheme(self) -> str:
        return self._url_parts.scheme.lower()

    @property
    def host(self) -> str | None:
        return self._url_parts.hostname

    @property
    def port(self) -> int | None:
        return self._url_parts.port or DEFAULT_PORTS.get(self.scheme)

    @property
    def path(self) -> str:
        return self._url_parts.path or "/"

    @property
    def query(self) -> Counter:
        """Query parameters as a multiset of (key, value) pairs."""
        return Counter(parse_qsl(self._url_parts.query, keep_blank_values=True))

    @property
    def userinfo(self) -> str:
        netloc = self._url_parts.netloc
        return netloc.rpartition("@")[0] if "@" in netloc else ""


class Response(_Frozen):
    status: int
    headers: Headers = ()
    body: bytes = b""

    @classmethod
    def from_httpx(cls, response: httpx.Response, body: bytes) -> "Response":
        return cls(
            status=response.status_code,
            headers=tuple(response.headers.multi_items()),
            body=body,
        )

    def to_httpx(
        self, request: httpx.Request | None = None, extra_headers: Headers = ()
    ) -> httpx.Response:
        """
        Build an httpx response that yields exactly the stored body. Passing a stream
        rather than content keeps httpx from adding or rewriting any header.
        """
        return httpx.Response(
            status_code=self.status,
            headers=list(self.headers) + list(extra_headers),
            stream=httpx.ByteStream(self.body),
            request=request,
        )


class Transaction(_Frozen):
    request: Request
    response: Response


class ComparisonResult(_Frozen):
    matched: bool
    dimension: str | None = None
    explanation: str = ""

    @classmethod
    def match(cls) -> "ComparisonResult":
        return cls(matched=True)

    @classmethod
    def mismatch(cls, dimension: str, explanation: str) -> "ComparisonResult":
        return cls(matched=False, dimension=dimension, explanation=explanation)

    def __bool__(self) -> bool:
        return self.matched

    def __str__(self) -> str:
        return self.explanation
