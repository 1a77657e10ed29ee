from collections import defaultdict
from collections.abc import Iterable
from typing import Callable, Literal

from .models import ComparisonResult, Request

ALL_HEADERS: Literal["all"] = "all"

# Merged into the exclusion set by the playback engine; the comparator itself ignores nothing.
DEFAULT_IGNORED_HEADERS = frozenset({"connection", "host", "content-length", "user-agent"})

IgnoreHeaders = frozenset[str] | Literal["all"]


def _header_values(request: Request, ignored: frozenset[str]) -> dict[str, list[str]]:
    values: dict[str, list[str]] = defaultdict(list)
    for name, value in request.headers:
        key = name.lower()
        if key not in ignored:
            values[key].append(value)
    return {key: sorted(vals) for key, vals in values.items()}


def _shorten(body: bytes, limit: int = 64) -> str:
    text = repr(body[:limit])
    return text + "..." if len(body) > limit else text


class RequestComparator:
    """
    Decide whether an incoming request is equivalent to a recorded one.

    Checks run in order (method, url, headers, body) and stop at the first
    difference; the outcome of the last comparison stays available as
    ``compare_result``.
    """

    def __init__(self, ignore_headers: Iterable[str] | str = (), ignore_body: bool = False):
        if isinstance(ignore_headers, str):
            if ignore_headers.lower() != ALL_HEADERS:
                raise ValueError(f"ignore_headers must be {ALL_HEADERS!r} or a collection of header names")
            self.ignore_headers: IgnoreHeaders = ALL_HEADERS
        else:
            self.ignore_headers = frozenset(name.lower() for name in ignore_headers)
        self.ignore_body = ignore_body
        self.compare_result: ComparisonResult | None = None

    def compare(self, incoming: Request, recorded: Request) -> ComparisonResult:
        checks: list[Callable[[Request, Request], ComparisonResult | None]] = [
            self._compare_method,
            self._compare_url,
        ]
        if self.ignore_headers != ALL_HEADERS:
            checks.append(self._compare_headers)
        if not self.ignore_body:
            checks.append(self._compare_body)

        result = ComparisonResult.match()
        for check in checks:
            mismatch = check(incoming, recorded)
            if mismatch is not None:
                result = mismatch
                break
        self.compare_result = result
        return result

    @staticmethod
    def _compare_method(incoming: Request, recorded: Request) -> ComparisonResult | None:
        if incoming.method.upper() != recorded.method.upper():
            return ComparisonResult.mismatch(
                "method",
                f"Method mismatch: got {incoming.method!r}, expected {recorded.method!r}",
            )
        return None

    @staticmethod
    def _compare_url(incoming: Request, recorded: Request) -> ComparisonResult | None:
        for part in ("scheme", "host", "port", "path"):
            got, expected = getattr(incoming, part), getattr(recorded, part)
            if got != expected:
                return ComparisonResult.mismatch(
                    "url",
                    f"URL {part} mismatch: got {got!r}, expected {expected!r} "
                    f"(url {incoming.url!r} vs recorded {recorded.url!r})",
                )
        got_query, expected_query = incoming.query, recorded.query
        if got_query != expected_query:
            extra = sorted((got_query - expected_query).elements())
            missing = sorted((expected_query - got_query).elements())
            return ComparisonResult.mismatch(
                "url",
                f"URL query mismatch: unexpected parameters {extra}, missing parameters {missing}",
            )
        return None

    def _compare_headers(self, incoming: Request, recorded: Request) -> ComparisonResult | None:
        got = _header_values(incoming, self.ignore_headers)
        expected = _header_values(recorded, self.ignore_headers)
        for name in sorted(got.keys() | expected.keys()):
            if name not in expected:
                return ComparisonResult.mismatch(
                    "headers", f"Header {name!r} present ({got[name]}) but not recorded"
                )
            if name not in got:
                return ComparisonResult.mismatch(
                    "headers", f"Header {name!r} missing, recorded {expected[name]}"
                )
            if got[name] != expected[name]:
                return ComparisonResult.mismatch(
                    "headers",
                    f"Header {name!r} mismatch: got {got[name]}, expected {expected[name]}",
                )
        return None

    @staticmethod
    def _compare_body(incoming: Request, recorded: Request) -> ComparisonResult | None:
        if incoming.body != recorded.body:
            return ComparisonResult.mismatch(
                "body",
                f"Body mismatch: got {_shorten(incoming.body)} ({len(incoming.body)} bytes), "
                f"expected {_shorten(recorded.body)} ({len(recorded.body)} bytes)",
            )
        return None
