import logging
import os.path
import warnings
from os import PathLike
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from . import serializer
from .compare import RequestComparator
from .config import MockableConfig
from .exceptions import ConfigurationError, MockableWarning
from .models import Mode, Response
from .playback import PlaybackEngine
from .record import RecordEngine
from .store import TransactionStore
from .transport import AsyncMockableTransport, Engine, MockableTransport

logger = logging.getLogger(__name__)

# Client keyword arguments that shape the default transport rather than the client
_TRANSPORT_KWARGS = ("verify", "cert", "http1", "http2", "limits")


class Mockable:
    """
    Owns a session's mode, its transaction store and the engine that feeds or
    drains it, and hands out httpx clients wired to that engine.

    Use it as a context manager, or call close(), so that record mode writes the
    recording on every exit path.
    """

    def __init__(
        self,
        mode: Mode | str = Mode.passthrough,
        file: PathLike | str | None = None,
        unrecognized: str = "exception",
        ignore_headers: list[str] | str = (),
        ignore_body: bool = False,
        filter_headers: list[str] = (),
        before_record_response: Callable[[Response], Response] | None = None,
    ):
        try:
            self.config = MockableConfig(
                mode=mode,
                file=file,
                unrecognized=unrecognized,
                ignore_headers=ignore_headers if isinstance(ignore_headers, str) else list(ignore_headers),
                ignore_body=ignore_body,
                filter_headers=list(filter_headers),
            )
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

        self.store: TransactionStore | None = None
        self.engine: Engine | None = None

        match self.mode:
            case Mode.record:
                self.store = TransactionStore()
                self.engine = RecordEngine(
                    self.store,
                    filter_headers=self.config.filter_headers,
                    before_record_response=before_record_response,
                )
            case Mode.playback:
                self.store = TransactionStore()
                self.store.load_from(self._load())
                self.engine = PlaybackEngine(
                    self.store,
                    RequestComparator(
                        ignore_headers=self.config.effective_ignore_headers,
                        ignore_body=self.config.ignore_body,
                    ),
                    unrecognized=self.config.unrecognized,
                )
            case Mode.passthrough:
                pass

    @property
    def mode(self) -> Mode:
        return self.config.mode

    @property
    def file(self):
        return self.config.file

    def _load(self):
        if not os.path.isfile(self.file):
            raise ConfigurationError(f"Playback file {self.file} not found")
        try:
            return serializer.retrieve(self.file)
        except ValidationError as exc:
            raise ConfigurationError(f"Playback file {self.file} is not a valid recording") from exc

    def transport(self, transport: httpx.BaseTransport | None = None) -> httpx.BaseTransport:
        """
        Wrap ``transport`` (a real HTTPTransport by default) so its requests go
        through this session's engine. In passthrough mode it is returned as is.
        """
        if self.engine is None:
            return transport if transport is not None else httpx.HTTPTransport()
        return MockableTransport(self.engine, transport)

    def async_transport(
        self, transport: httpx.AsyncBaseTransport | None = None
    ) -> httpx.AsyncBaseTransport:
        if self.engine is None:
            return transport if transport is not None else httpx.AsyncHTTPTransport()
        return AsyncMockableTransport(self.engine, transport)

    def client(self, **kwargs: Any) -> httpx.Client:
        if self.engine is None:
            return httpx.Client(**kwargs)
        inner = kwargs.pop("transport", None)
        if inner is None:
            inner = httpx.HTTPTransport(**_transport_kwargs(kwargs))
        return httpx.Client(transport=self.transport(inner), **kwargs)

    def async_client(self, **kwargs: Any) -> httpx.AsyncClient:
        if self.engine is None:
            return httpx.AsyncClient(**kwargs)
        inner = kwargs.pop("transport", None)
        if inner is None:
            inner = httpx.AsyncHTTPTransport(**_transport_kwargs(kwargs))
        return httpx.AsyncClient(transport=self.async_transport(inner), **kwargs)

    def save(self, file: PathLike | str | None = None) -> None:
        """
        Write the recorded transactions to ``file`` (the session's file by default).
        Only meaningful in record mode; elsewhere it warns and does nothing.
        """
        if self.mode != Mode.record:
            warnings.warn("save() only works in record mode", MockableWarning, stacklevel=2)
            return
        serializer.store(file or self.file, self.store.snapshot())

    def close(self) -> None:
        """
        End the session. In record mode the recording is written; a missing target
        directory or a failed write is reported as a warning rather than raised.
        """
        if self.mode != Mode.record:
            return
        directory = os.path.dirname(self.file) or "."
        if not os.path.isdir(directory):
            warnings.warn(
                f"Cannot write output file: directory {directory!r} does not exist",
                MockableWarning,
                stacklevel=2,
            )
        try:
            self.save()
        except OSError as exc:
            logger.error("Failed to write recording %s: %s", self.file, exc)
            warnings.warn(f"Failed to write recording {self.file}: {exc}", MockableWarning, stacklevel=2)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def _transport_kwargs(kwargs: dict[str, Any]) -> dict[str, Any]:
    return {key: kwargs.pop(key) for key in _TRANSPORT_KWARGS if key in kwargs}
