from collections.abc import AsyncIterator, Iterator
from typing import Callable

import httpx

CompletionHook = Callable[[bytes], None]


class _Completion:
    def __init__(self, on_complete: CompletionHook):
        self._on_complete = on_complete
        self._chunks: list[bytes] = []
        self._completed = False

    def _complete(self) -> None:
        # Fires once, and only when the body was read to the end.
        if self._completed:
            return
        self._completed = True
        self._on_complete(b"".join(self._chunks))


class CompletionStream(_Completion, httpx.SyncByteStream):
    """
    Wrap a response byte stream, collecting the raw body and handing it to
    ``on_complete`` once the stream is exhausted.
    """

    def __init__(self, stream: httpx.SyncByteStream, on_complete: CompletionHook):
        super().__init__(on_complete)
        self._stream = stream

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._stream:
            self._chunks.append(chunk)
            yield chunk
        self._complete()

    def close(self) -> None:
        self._stream.close()


class AsyncCompletionStream(_Completion, httpx.AsyncByteStream):
    def __init__(self, stream: httpx.AsyncByteStream, on_complete: CompletionHook):
        super().__init__(on_complete)
        self._stream = stream

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            self._chunks.append(chunk)
            yield chunk
        self._complete()

    async def aclose(self) -> None:
        await self._stream.aclose()
