import asyncio
from typing import AsyncIterator, List, Optional

import httpx

from pipefn.pipefn_datatypes import read_text


async def http_get(url: str, *, timeout: float = 5.0, retries: int = 2, backoff: float = 0.2) -> httpx.Response:
    """
    Core fetch helper.

    Returns the response whatever its status code; only transport errors
    (connection refused, timeouts, ...) are retried, with exponential backoff.
    The body is read before the client closes so later steps can still
    stream it.
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        last_exc = None
        retries = max(0, int(retries))
        for attempt in range(retries + 1):
            try:
                resp = await client.request("GET", url)
                await resp.aread()
                return resp
            except httpx.TransportError as e:
                last_exc = e
                if attempt < retries:
                    await asyncio.sleep(backoff * (2 ** attempt))
                    continue
                raise last_exc


def _expect_response(value) -> httpx.Response:
    if not isinstance(value, httpx.Response):
        raise TypeError(f"expected an HTTP response, got {type(value).__name__}")
    return value


class Fetch:
    """The Fetch.* capabilities, bound to the process configuration."""

    def __init__(self, *, timeout: float = 5.0, retries: int = 2, backoff: float = 0.2):
        self.timeout = timeout
        self.retries = max(0, int(retries))
        self.backoff = backoff

    async def get(self, url) -> httpx.Response:
        target = (await read_text(url)).strip()
        if not target:
            raise ValueError("Fetch.get expects a non-empty url")
        return await http_get(target, timeout=self.timeout, retries=self.retries, backoff=self.backoff)

    async def status(self, res) -> int:
        return int(_expect_response(res).status_code)

    async def headers(self, res) -> List[List[str]]:
        # httpx lower-cases names and joins repeated headers with ", "
        return [[k, v] for k, v in _expect_response(res).headers.items()]

    async def body(self, res) -> Optional[AsyncIterator[bytes]]:
        resp = _expect_response(res)
        if not resp.content:
            return None
        return resp.aiter_bytes()
