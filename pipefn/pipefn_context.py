from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from pipefn.pipefn_config import DEFAULT_CLIENT_IP_HEADER


@dataclass(frozen=True)
class InvocationContext:
    """Read-only request data captured by one Runner's nullary rules."""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Any = None
    client_ip_header: str = DEFAULT_CLIENT_IP_HEADER

    def __post_init__(self):
        if not isinstance(self.headers, httpx.Headers):
            object.__setattr__(self, "headers", httpx.Headers(self.headers or {}))

    @classmethod
    def from_request(cls, request: httpx.Request, *, client_ip_header: str = DEFAULT_CLIENT_IP_HEADER) -> "InvocationContext":
        # An httpx.Request without content still carries an empty stream; treat that as absent.
        body = request.stream if request.headers.get("content-length", "0") != "0" or "transfer-encoding" in request.headers else None
        return cls(headers=request.headers, body=body, client_ip_header=client_ip_header)

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def client_address(self) -> Optional[str]:
        return self.header(self.client_ip_header)

    def read_body(self) -> Any:
        return self.body
