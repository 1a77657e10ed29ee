import httpx
import pytest

from httpx_mockable.exceptions import UnrecognizedRequest
from httpx_mockable.mockable import Mockable

BASE_URL = "https://example.com"


def make_url(path: str) -> str:
    return f"{BASE_URL}{path}"


def fail_handler(request):  # pragma: no cover - should not be called
    raise AssertionError("Network should not be hit during replay")


async def async_echo(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=request.url.path.encode())


@pytest.mark.asyncio
async def test_record_and_replay_async(tmp_path):
    file_path = tmp_path / "async.json"

    with Mockable(mode="record", file=file_path) as mock:
        async with mock.async_client(transport=httpx.MockTransport(async_echo)) as client:
            first = await client.get(make_url("/one"))
            await client.post(make_url("/two"), content=b"payload")
        assert first.content == b"/one"
        assert len(mock.store) == 2

    playback = Mockable(mode="playback", file=file_path)
    async with playback.async_client(transport=httpx.MockTransport(fail_handler)) as client:
        one = await client.get(make_url("/one"))
        two = await client.post(make_url("/two"), content=b"payload")
        with pytest.raises(UnrecognizedRequest):
            await client.get(make_url("/three"))

    assert one.content == b"/one"
    assert one.headers["X-Mockable-Regenerated"] == "1"
    assert two.content == b"/two"


@pytest.mark.asyncio
async def test_async_completion_order(tmp_path):
    mock = Mockable(mode="record", file=tmp_path / "rec.json")
    client = mock.async_client(transport=httpx.MockTransport(async_echo))

    async with client.stream("GET", make_url("/slow")) as slow:
        async with client.stream("GET", make_url("/fast")) as fast:
            await fast.aread()
        await slow.aread()
    await client.aclose()

    assert [tx.request.path for tx in mock.store.snapshot()] == ["/fast", "/slow"]


@pytest.mark.asyncio
async def test_async_fallback(tmp_path):
    file_path = tmp_path / "fallback.json"
    with Mockable(mode="record", file=file_path) as mock:
        async with mock.async_client(transport=httpx.MockTransport(async_echo)) as client:
            await client.get(make_url("/recorded"))

    playback = Mockable(mode="playback", file=file_path, unrecognized="fallback")
    async with playback.async_client(transport=httpx.MockTransport(async_echo)) as client:
        resp = await client.get(make_url("/live"))

    assert resp.content == b"/live"
    assert resp.request.headers["X-Mockable-Request-Recognized"] == "false"
