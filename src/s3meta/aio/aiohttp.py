#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from itertools import chain
from typing import Any

import aiohttp
from yarl import URL

from .._http import Fields
from ..exceptions import TransportError
from ..interfaces.http import (
    HTTPClientConfiguration,
    HTTPRequestConfiguration,
    Request,
)
from . import HTTPResponse
from .interfaces import HTTPClient

_LOGGER = logging.getLogger(__name__)

TRANSPORT_EXCEPTIONS: tuple[type[Exception], ...] = (aiohttp.ClientError, TimeoutError)


class AIOHTTPClientConfig(HTTPClientConfiguration):
    pass


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`.interfaces.HTTPClient` using aiohttp."""

    def __init__(
        self,
        *,
        client_config: HTTPClientConfiguration | None = None,
        _session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = client_config or AIOHTTPClientConfig()
        # The session is created on first use so that it binds to the running loop.
        self._session = _session

    async def send(
        self,
        *,
        request: Request,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        :raises TransportError: If the exchange could not be completed.
        """
        request_config = request_config or HTTPRequestConfiguration()

        headers_list = list(
            chain.from_iterable(fld.as_tuples() for fld in request.fields)
        )
        # aiohttp would otherwise add a Content-Type the signature doesn't cover.
        skip_auto_headers = (
            () if "Content-Type" in request.fields else ("Content-Type",)
        )

        url = request.destination.build()
        _LOGGER.debug("Sending %s request to %s", request.method, url)
        try:
            async with self._get_session().request(
                method=request.method,
                # The path and query are already percent-encoded.
                url=URL(url, encoded=True),
                headers=headers_list,
                data=request.body or None,
                skip_auto_headers=skip_auto_headers,
                timeout=self._timeout(request_config),
            ) as resp:
                return await self._marshal_response(resp)
        except TRANSPORT_EXCEPTIONS as e:
            raise TransportError(
                f"{request.method} {url} failed: {type(e).__name__}: {e}"
            ) from e

    async def close(self) -> None:
        """Close the underlying aiohttp session, if one was opened."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _timeout(
        self, request_config: HTTPRequestConfiguration
    ) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self._config.timeout,
            sock_read=request_config.read_timeout,
        )

    async def _marshal_response(
        self, aiohttp_resp: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to a ``s3meta.aio.HTTPResponse``"""
        headers = Fields()
        for header_name, header_val in aiohttp_resp.headers.items():
            headers.add_value(header_name, header_val)

        return HTTPResponse(
            status=aiohttp_resp.status,
            fields=headers,
            body=await aiohttp_resp.read(),
            reason=aiohttp_resp.reason,
        )

    def __deepcopy__(self, memo: Any) -> "AIOHTTPClient":
        return self
