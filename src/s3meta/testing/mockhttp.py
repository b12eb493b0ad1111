#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

from collections import deque
from copy import deepcopy
from typing import Any

from .._http import tuples_to_fields
from ..aio import HTTPResponse
from ..aio.interfaces import HTTPClient
from ..interfaces.http import (
    HTTPClientConfiguration,
    HTTPRequestConfiguration,
    Request,
)


class MockHTTPClient(HTTPClient):
    """Implementation of :py:class:`.interfaces.HTTPClient` solely for testing purposes.

    Simulates HTTP request/response behavior. Responses and errors are queued in FIFO
    order and requests are captured for inspection.
    """

    def __init__(
        self,
        *,
        client_config: HTTPClientConfiguration | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._client_config = client_config
        self._response_queue: deque[dict[str, Any] | Exception] = deque()
        self._captured_requests: list[Request] = []
        self.closed = False

    def add_response(
        self,
        status: int = 200,
        headers: list[tuple[str, str]] | None = None,
        body: bytes = b"",
        reason: str | None = None,
    ) -> None:
        """Queue a response for the next request.

        :param status: HTTP status code.
        :param headers: HTTP response headers as list of (name, value) tuples.
        :param body: Response body as bytes.
        :param reason: Optional reason phrase.
        """
        self._response_queue.append(
            {
                "status": status,
                "headers": headers or [],
                "body": body,
                "reason": reason,
            }
        )

    def add_error(self, error: Exception) -> None:
        """Queue an exception to be raised by the next request.

        :param error: Usually a :py:class:`s3meta.exceptions.TransportError`.
        """
        self._response_queue.append(error)

    async def send(
        self,
        *,
        request: Request,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request and return configured response.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        :returns: Pre-configured HTTP response from the queue.
        :raises MockHTTPClientError: If no responses are queued.
        """
        self._captured_requests.append(deepcopy(request))

        if not self._response_queue:
            raise MockHTTPClientError(
                "No responses queued in MockHTTPClient. Use add_response() to queue responses."
            )

        response_data = self._response_queue.popleft()
        if isinstance(response_data, Exception):
            raise response_data
        return HTTPResponse(
            status=response_data["status"],
            fields=tuples_to_fields(response_data["headers"]),
            body=response_data["body"],
            reason=response_data["reason"],
        )

    async def close(self) -> None:
        self.closed = True

    @property
    def call_count(self) -> int:
        """The number of requests made to this client."""
        return len(self._captured_requests)

    @property
    def captured_requests(self) -> list[Request]:
        """The list of all requests captured by this client."""
        return self._captured_requests.copy()

    def __deepcopy__(self, memo: Any) -> "MockHTTPClient":
        return self


class MockHTTPClientError(Exception):
    """Exception raised by MockHTTPClient for test setup issues."""
