from typing import Callable, NamedTuple, Protocol

import httpx

from .streams import AsyncCompletionStream, CompletionStream

OnComplete = Callable[[httpx.Response, bytes], None]


class Forward(NamedTuple):
    """
    Engine verdict: send the request on to the real transport, optionally calling
    ``on_complete(response, body)`` once the response body has been fully received.
    """

    on_complete: OnComplete | None = None


class Engine(Protocol):
    def intercept(self, request: httpx.Request) -> httpx.Response | Forward: ...


def _rewrap(response: httpx.Response, stream, request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        status_code=response.status_code,
        headers=response.headers,
        stream=stream,
        extensions=response.extensions,
        request=request,
    )


class MockableTransport(httpx.BaseTransport):
    """
    Transport that hands every outgoing request to an engine before it leaves the
    process, and forwards to the wrapped transport when the engine says so.
    """

    def __init__(self, engine: Engine, transport: httpx.BaseTransport | None = None):
        self.engine = engine
        self.transport = transport if transport is not None else httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request.read()
        outcome = self.engine.intercept(request)
        if isinstance(outcome, httpx.Response):
            return outcome

        response = self.transport.handle_request(request)
        if outcome.on_complete is None:
            return response
        on_complete = outcome.on_complete
        stream = CompletionStream(response.stream, lambda body: on_complete(response, body))
        return _rewrap(response, stream, request)

    def close(self) -> None:
        self.transport.close()


class AsyncMockableTransport(httpx.AsyncBaseTransport):
    def __init__(self, engine: Engine, transport: httpx.AsyncBaseTransport | None = None):
        self.engine = engine
        self.transport = transport if transport is not None else httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        outcome = self.engine.intercept(request)
        if isinstance(outcome, httpx.Response):
            return outcome

        response = await self.transport.handle_async_request(request)
        if outcome.on_complete is None:
            return response
        on_complete = outcome.on_complete
        stream = AsyncCompletionStream(response.stream, lambda body: on_complete(response, body))
        return _rewrap(response, stream, request)

    async def aclose(self) -> None:
        await self.transport.aclose()
