import logging
import time
from dataclasses import dataclass
from http import HTTPMethod
from typing import Any, Optional

import httpx

from .httpx_settings import HttpxSettings, httpx_settings

logger = logging.getLogger(__name__)


@dataclass
class HTTPXClientData:
    client: httpx.AsyncClient
    request_count: int
    created_at: float
    in_flight: int = 0


class HTTPXManager:
    """Hands out one shared AsyncClient and replaces it once it is worn out.

    A client is retired after CLIENT_REQUEST_LIMIT requests or
    CLIENT_EXPIRE_SECONDS of age, whichever comes first.
    """

    def __init__(self, config: Optional[HttpxSettings] = None):
        config = config or httpx_settings
        self._client_limit = config.CLIENT_REQUEST_LIMIT
        self._client_expire_sec = config.CLIENT_EXPIRE_SECONDS
        self._http2 = config.HTTP2

        self._timeout = config.TIMEOUT
        self._limits = httpx.Limits(
            max_connections=config.MAX_CONNECTIONS,
            max_keepalive_connections=config.MAX_KEEPALIVE_CONNECTIONS,
        )

        self._client_data: Optional[HTTPXClientData] = None

    def _create_client(self) -> HTTPXClientData:
        return HTTPXClientData(
            client=httpx.AsyncClient(
                http2=self._http2, timeout=self._timeout, limits=self._limits
            ),
            request_count=0,
            created_at=time.time(),
        )

    def _get_client(self) -> HTTPXClientData:
        if self._client_data is None:
            self._client_data = self._create_client()
        self._client_data.in_flight += 1
        return self._client_data

    async def _return_client(self, client_data: HTTPXClientData):
        client_data.request_count += 1
        client_data.in_flight -= 1
        expired = (time.time() - client_data.created_at) > self._client_expire_sec
        limit_reached = client_data.request_count >= self._client_limit

        if (expired or limit_reached) and self._client_data is client_data:
            logger.debug(
                "Retiring httpx client after %d requests", client_data.request_count
            )
            self._client_data = None

        # a retired client is closed by whichever request finishes on it last
        if self._client_data is not client_data and client_data.in_flight == 0:
            await client_data.client.aclose()

    async def async_request(
        self,
        url: str,
        method: HTTPMethod = HTTPMethod.GET,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
        content: Optional[bytes] = None,
        json: Any = None,
    ) -> httpx.Response:
        client_data = self._get_client()
        try:
            response = await client_data.client.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                content=content,
                json=json,
            )
            return response
        finally:
            await self._return_client(client_data)

    async def aclose(self) -> None:
        if self._client_data is not None:
            client_data, self._client_data = self._client_data, None
            await client_data.client.aclose()


httpx_manager = HTTPXManager()
