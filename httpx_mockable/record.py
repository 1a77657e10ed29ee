import logging
from collections.abc import Iterable
from typing import Callable

import httpx

from .models import Headers, Request, Response, Transaction
from .store import TransactionStore
from .transport import Forward

logger = logging.getLogger(__name__)


def filter_headers(headers: Headers, names: frozenset[str]) -> Headers:
    if not names:
        return headers
    return tuple((name, value) for name, value in headers if name.lower() not in names)


class RecordEngine:
    """
    Let every request through and append each completed transaction to the store,
    in completion order.
    """

    def __init__(
        self,
        store: TransactionStore,
        filter_headers: Iterable[str] = (),
        before_record_response: Callable[[Response], Response] | None = None,
    ):
        self.store = store
        self.filter_headers = frozenset(name.lower() for name in filter_headers)
        self.before_record_response = before_record_response

    def intercept(self, request: httpx.Request) -> Forward:
        # Captured now, before anything downstream can touch the request.
        recorded_request = Request.from_httpx(request)
        recorded_request = recorded_request.model_copy(
            update={"headers": filter_headers(recorded_request.headers, self.filter_headers)}
        )

        def on_complete(response: httpx.Response, body: bytes) -> None:
            recorded_response = Response.from_httpx(response, body)
            recorded_response = recorded_response.model_copy(
                update={"headers": filter_headers(recorded_response.headers, self.filter_headers)}
            )
            if self.before_record_response is not None:
                recorded_response = self.before_record_response(recorded_response)
            self.store.push_back(
                Transaction(request=recorded_request, response=recorded_response)
            )
            logger.debug(
                "Recorded %s %s -> %d (%d bytes)",
                recorded_request.method,
                recorded_request.url,
                recorded_response.status,
                len(recorded_response.body),
            )

        return Forward(on_complete)
