#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from typing import Protocol

from ..interfaces.http import (
    Fields,
    HTTPClientConfiguration,
    HTTPRequestConfiguration,
    Request,
)


class HTTPResponse(Protocol):
    """HTTP primitives returned from an exchange."""

    @property
    def status(self) -> int:
        """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""
        ...

    @property
    def fields(self) -> Fields:
        """``Fields`` object containing HTTP headers."""
        ...

    @property
    def reason(self) -> str | None:
        """Optional string provided by the server explaining the status."""
        ...

    async def consume_body_async(self) -> bytes:
        """Return the response payload as bytes."""
        ...


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface.

    Implementations raise :py:class:`s3meta.exceptions.TransportError` when an
    exchange could not be completed. A response with any status code is a completed
    exchange.
    """

    def __init__(self, *, client_config: HTTPClientConfiguration | None) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        ...

    async def send(
        self,
        *,
        request: Request,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request over the wire and return the response.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the client."""
        ...
