from __future__ import annotations

import ssl
from typing import Optional

from httpx import (
    AsyncBaseTransport,
    AsyncClient,
    AsyncHTTPTransport,
    HTTPError,
    HTTPStatusError,
    Request,
    Response,
    Timeout,
)

__all__ = ["Response", "Request", "HTTPError", "HttpClient", "HTTPStatusError"]

# NOTE: this has a cost to create so we may want to set this lazily on the first HttpClient creation
context = ssl.create_default_context()


class HttpClient(AsyncClient):
    """
    HTTP Client with the SSL config cached at the module level to avoid perf issues.
    see: https://github.com/encode/httpx/issues/838

    Connection failures are retried by the transport, `retries` times.
    """

    def __init__(
        self,
        *,
        timeout: Timeout,
        retries: int = 0,
        transport: Optional[AsyncBaseTransport] = None,
    ):
        super().__init__(
            timeout=timeout,
            transport=transport
            or AsyncHTTPTransport(verify=context, retries=retries),
        )
