import httpx
import pytest

import pipefn.pipefn_http as pipefn_http_mod
from pipefn.pipefn_http import Fetch, http_get


def install_transport(monkeypatch, handler):
    """Route every AsyncClient created by pipefn_http through a MockTransport."""
    real_client = httpx.AsyncClient

    class DummyAsyncClient(real_client):
        def __init__(self, *args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(pipefn_http_mod, "httpx", type("X", (), {
        "AsyncClient": DummyAsyncClient,
        "TransportError": httpx.TransportError,
        "Response": httpx.Response,
    }))


@pytest.mark.asyncio
async def test_fetch_get_status_headers_body(monkeypatch):
    def handler(request):
        assert request.method == "GET"
        return httpx.Response(200, headers={"Content-Type": "text/plain", "X-Test": "1"}, content=b"hello world")

    install_transport(monkeypatch, handler)
    fetch = Fetch(retries=0)
    res = await fetch.get("http://example/api")
    assert isinstance(res, httpx.Response)
    assert await fetch.status(res) == 200
    headers = await fetch.headers(res)
    assert ["content-type", "text/plain"] in headers
    assert ["x-test", "1"] in headers

    stream = await fetch.body(res)
    chunks = [c async for c in stream]
    assert b"".join(chunks) == b"hello world"


@pytest.mark.asyncio
async def test_non_2xx_is_returned_not_raised(monkeypatch):
    install_transport(monkeypatch, lambda request: httpx.Response(404, content=b"missing"))
    fetch = Fetch(retries=0)
    res = await fetch.get("http://example/missing")
    assert await fetch.status(res) == 404


@pytest.mark.asyncio
async def test_empty_body_is_none(monkeypatch):
    install_transport(monkeypatch, lambda request: httpx.Response(204))
    fetch = Fetch(retries=0)
    res = await fetch.get("http://example/empty")
    assert await fetch.body(res) is None


@pytest.mark.asyncio
async def test_transport_errors_are_retried(monkeypatch):
    attempts = []

    def handler(request):
        attempts.append(request.url)
        if len(attempts) < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, content=b"ok")

    install_transport(monkeypatch, handler)
    res = await http_get("http://example/flaky", retries=2, backoff=0)
    assert res.status_code == 200
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_transport_error_raises_after_retries(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    install_transport(monkeypatch, handler)
    with pytest.raises(httpx.ConnectError):
        await http_get("http://example/down", retries=1, backoff=0)


@pytest.mark.asyncio
async def test_negative_retries_still_make_one_attempt(monkeypatch):
    attempts = []

    def handler(request):
        attempts.append(request.url)
        return httpx.Response(200, content=b"ok")

    install_transport(monkeypatch, handler)
    fetch = Fetch(retries=-1)
    assert fetch.retries == 0
    res = await fetch.get("http://example/once")
    assert isinstance(res, httpx.Response)
    assert res.status_code == 200
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_negative_retries_raise_transport_error(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    install_transport(monkeypatch, handler)
    with pytest.raises(httpx.ConnectError):
        await http_get("http://example/down", retries=-3, backoff=0)


@pytest.mark.asyncio
async def test_url_may_arrive_as_bytes(monkeypatch):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=b"x")

    install_transport(monkeypatch, handler)
    await Fetch(retries=0).get(b"http://example/from-bytes")
    assert seen == ["http://example/from-bytes"]


@pytest.mark.asyncio
async def test_response_helpers_reject_other_values():
    fetch = Fetch()
    with pytest.raises(TypeError):
        await fetch.status("not a response")
    with pytest.raises(ValueError):
        await fetch.get("   ")
