import httpx

from .models import Transaction

HEADER_PREFIX = "x-mockable-"
REGENERATED_HEADER = "X-Mockable-Regenerated"
RECOGNIZED_HEADER = "X-Mockable-Request-Recognized"
MATCH_EXCEPTION_HEADER = "X-Mockable-Request-Match-Exception"

LOCAL_ORIGIN = httpx.URL("http://mockable.local")


class LocalResponder(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """
    In-process stand-in for the remote server during playback.

    With a ``current`` transaction set, answers any request with that transaction's
    stored response, marked as regenerated. Without one, answers with an empty body
    and echoes back the request's ``X-Mockable-*`` diagnostic headers.
    """

    def __init__(self, origin: httpx.URL = LOCAL_ORIGIN):
        self.origin = origin
        self.current: Transaction | None = None

    def rewrite(self, request: httpx.Request) -> httpx.Request:
        """Copy of the request pointed at this responder, keeping path and query."""
        return httpx.Request(
            request.method,
            request.url.copy_with(
                scheme=self.origin.scheme, host=self.origin.host, port=self.origin.port
            ),
            headers=request.headers,
            content=request.content,
            extensions=request.extensions,
        )

    def serve(self, request: httpx.Request) -> httpx.Response:
        """
        Answer a local copy of the request. The caller's request keeps its URL and
        is the one attached to the response, so cookies and relative redirects
        resolve against the recorded host.
        """
        response = self.handle_request(self.rewrite(request))
        response.request = request
        return response

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if self.current is not None:
            return self.current.response.to_httpx(
                request, extra_headers=((REGENERATED_HEADER, "1"),)
            )
        echoed = [
            (name, value)
            for name, value in request.headers.multi_items()
            if name.lower().startswith(HEADER_PREFIX)
        ]
        return httpx.Response(200, headers=echoed, content=b"", request=request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return self.handle_request(request)
