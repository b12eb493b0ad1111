#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

from copy import deepcopy
from unittest.mock import MagicMock

import aiohttp
import pytest
from s3meta import URI, Field, Fields, HTTPRequest
from s3meta.aio.aiohttp import AIOHTTPClient
from s3meta.exceptions import TransportError


@pytest.fixture
def sample_request() -> HTTPRequest:
    return HTTPRequest(
        destination=URI(host="johnsmith.s3.amazonaws.com", path="/chris"),
        method="GET",
        fields=Fields([Field(name="Date", values=["now"])]),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        aiohttp.ClientConnectionError("refused"),
        aiohttp.ServerDisconnectedError(),
        TimeoutError(),
    ],
)
async def test_transport_failures_are_wrapped(
    sample_request: HTTPRequest, error: Exception
) -> None:
    session = MagicMock(spec=aiohttp.ClientSession)
    session.closed = False
    session.request.side_effect = error
    client = AIOHTTPClient(_session=session)

    with pytest.raises(TransportError) as exc_info:
        await client.send(request=sample_request)
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_close_without_session() -> None:
    await AIOHTTPClient().close()


def test_deepcopy_returns_same_client() -> None:
    client = AIOHTTPClient()
    assert deepcopy(client) is client
