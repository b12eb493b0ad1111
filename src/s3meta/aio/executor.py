#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from asyncio import sleep
from copy import deepcopy

from ..exceptions import RetryError, TransportError
from ..interfaces.http import HTTPRequestConfiguration, Request
from ..interfaces.retries import RetryStrategy
from ..retries import BoundedRetryStrategy
from .interfaces import HTTPClient, HTTPResponse

_LOGGER = logging.getLogger(__name__)


class RetryingExecutor:
    """Sends signed requests, retrying transport failures.

    Any response returned by the HTTP client ends the loop, whatever its status code.
    Only :py:class:`TransportError` triggers another attempt, and every transport
    error is treated the same way. When the retry strategy refuses another attempt
    the error from the last attempt is raised.
    """

    def __init__(
        self,
        *,
        http_client: HTTPClient,
        retry_strategy: RetryStrategy | None = None,
    ) -> None:
        """
        :param http_client: The client used to send each attempt.
        :param retry_strategy: Decides whether and when to retry. Defaults to
        :py:class:`BoundedRetryStrategy` with the default policy.
        """
        self.http_client = http_client
        self.retry_strategy = retry_strategy or BoundedRetryStrategy()

    async def execute(
        self,
        request: Request,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send ``request`` until a response is received or the budget is spent.

        :param request: A fully prepared, signed request. It is never mutated; each
            attempt sends its own copy.
        :param request_config: Configuration forwarded to the HTTP client.
        :raises TransportError: The error raised by the final attempt.
        """
        retry_token = self.retry_strategy.acquire_initial_retry_token()

        while True:
            if retry_token.retry_delay:
                await sleep(retry_token.retry_delay)

            try:
                response = await self.http_client.send(
                    request=deepcopy(request), request_config=request_config
                )
            except TransportError as error:
                try:
                    retry_token = self.retry_strategy.refresh_retry_token_for_retry(
                        token_to_renew=retry_token, error=error
                    )
                except RetryError as retry_error:
                    _LOGGER.debug(
                        "Not retrying %s request: %s", request.method, retry_error
                    )
                    raise error

                _LOGGER.debug(
                    "Retry needed. Attempting request #%s in %.4f seconds.",
                    retry_token.retry_count + 1,
                    retry_token.retry_delay,
                )
            else:
                self.retry_strategy.record_success(token=retry_token)
                return response
