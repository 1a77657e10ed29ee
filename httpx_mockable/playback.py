import logging
import threading
from typing import Callable

import httpx

from .compare import RequestComparator
from .exceptions import UnrecognizedRequest
from .models import ComparisonResult, Request, Unrecognized
from .responder import MATCH_EXCEPTION_HEADER, RECOGNIZED_HEADER, LocalResponder
from .store import TransactionStore
from .transport import Forward

logger = logging.getLogger(__name__)

EXHAUSTED = ComparisonResult.mismatch("store", "No recorded transactions remain")


def header_safe(explanation: str) -> str:
    """Fold an explanation into a single ASCII line usable as a header value."""
    folded = " ".join(explanation.split())
    return folded.encode("ascii", "backslashreplace").decode("ascii")


def mark_unrecognized(request: httpx.Request, result: ComparisonResult) -> None:
    request.headers[RECOGNIZED_HEADER] = "false"
    request.headers[MATCH_EXCEPTION_HEADER] = header_safe(str(result))


class PlaybackEngine:
    """
    Serve requests from a recording, strictly in recorded order.

    Each request is compared against the head of the store only. On a match the
    request is rewritten to the local responder, which answers with the stored
    response. On a mismatch the transaction goes back on the head and the
    unrecognized policy decides what the caller gets.
    """

    def __init__(
        self,
        store: TransactionStore,
        comparator: RequestComparator,
        unrecognized: Unrecognized = Unrecognized.exception,
        responder: LocalResponder | None = None,
    ):
        self.store = store
        self.comparator = comparator
        self.unrecognized = Unrecognized(unrecognized)
        self.responder = responder if responder is not None else LocalResponder()
        self.last_result: ComparisonResult | None = None
        self._lock = threading.Lock()
        self._policies: dict[
            Unrecognized,
            Callable[[httpx.Request, ComparisonResult], httpx.Response | Forward],
        ] = {
            Unrecognized.exception: self._raise,
            Unrecognized.null: self._respond_empty,
            Unrecognized.fallback: self._fall_back,
        }

    def intercept(self, request: httpx.Request) -> httpx.Response | Forward:
        incoming = Request.from_httpx(request)
        with self._lock:
            recorded = self.store.pop_front()
            if recorded is None:
                result = EXHAUSTED
            else:
                result = self.comparator.compare(incoming, recorded.request)
            self.last_result = result

            if result:
                logger.debug("Replaying %s %s", incoming.method, incoming.url)
                self.responder.current = recorded
                try:
                    return self.responder.serve(request)
                finally:
                    self.responder.current = None

            if recorded is not None:
                self.store.push_front(recorded)
            return self._policies[self.unrecognized](request, result)

    def _raise(self, request: httpx.Request, result: ComparisonResult) -> httpx.Response:
        logger.debug("Unrecognized request %s %s: %s", request.method, request.url, result)
        raise UnrecognizedRequest(result)

    def _respond_empty(self, request: httpx.Request, result: ComparisonResult) -> httpx.Response:
        logger.warning("Unrecognized request %s %s: %s", request.method, request.url, result)
        mark_unrecognized(request, result)
        return self.responder.serve(request)

    def _fall_back(self, request: httpx.Request, result: ComparisonResult) -> Forward:
        logger.warning(
            "Unrecognized request %s %s, sending it to the network: %s",
            request.method,
            request.url,
            result,
        )

        def on_complete(response: httpx.Response, body: bytes) -> None:
            mark_unrecognized(request, result)

        return Forward(on_complete)
