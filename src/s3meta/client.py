#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Self
from urllib.parse import quote, urlsplit

from ._http import URI, Field, Fields, HTTPRequest
from ._identity import S3CredentialIdentity
from .aio.aiohttp import AIOHTTPClient
from .aio.executor import RetryingExecutor
from .aio.interfaces import HTTPResponse
from .config import Config
from .deserializers import ListBucketResult, parse_list_bucket_result
from .exceptions import RequestConstructionError, S3MetaIdentityError, ServiceError
from .retries import BoundedRetryStrategy
from .signers import S3Signer, S3SigningProperties
from .utils import Body, extract_metadata, metadata_fields, read_body

_LOGGER = logging.getLogger(__name__)

_METHOD_RE = re.compile(r"^[A-Z]+$")
PUT_CONTENT_TYPE = "text/plain"


@dataclass(kw_only=True, frozen=True)
class Bucket:
    """Where a bucket lives.

    Object URLs are ``{scheme}://{name}{base}{key}``.
    """

    name: str
    """The bucket name, for example ``com-awesome-dev-bucket``."""

    base: str = ".s3.amazonaws.com/"
    """The URL base for the region, appended to the bucket name."""

    scheme: str = "http"

    def __post_init__(self) -> None:
        if not self.name:
            raise RequestConstructionError("Bucket name must not be empty.")

    def object_uri(self, key: str) -> URI:
        """The location of the object stored under ``key``."""
        return self._parse(f"{self.scheme}://{self.name}{self.base}{quote(key)}")

    def listing_uri(self, prefix: str) -> URI:
        """The location used to list objects whose key starts with ``prefix``."""
        return self._parse(
            f"{self.scheme}://{self.name}{self.base}?prefix={quote(prefix, safe='')}"
        )

    def _parse(self, url: str) -> URI:
        parts = urlsplit(url)
        try:
            port = parts.port
        except ValueError as e:
            raise RequestConstructionError(f"Invalid URL {url!r}: {e}") from e
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise RequestConstructionError(f"Invalid URL {url!r}")
        return URI(
            scheme=parts.scheme,
            host=parts.hostname,
            port=port,
            path=parts.path or "/",
            query=parts.query or None,
        )


class BucketClient:
    """Reads and writes objects, with user metadata, in a single bucket.

    Every operation builds a request, signs it and sends it through a
    :py:class:`RetryingExecutor`. Transport failures are retried according to the
    configured retry policy; HTTP error statuses are not.

    Use as an async context manager, or call :py:meth:`close`, to release the HTTP
    session the client creates.
    """

    def __init__(
        self,
        *,
        bucket: Bucket,
        identity: S3CredentialIdentity | None = None,
        config: Config | None = None,
        signer: S3Signer | None = None,
    ) -> None:
        """
        :param bucket: The bucket all operations target.
        :param identity: The key pair used to sign requests. When omitted the key
            pair is read from the resolved ``config``.
        :param config: Retry tunables, credentials and an optional HTTP client.
            Resolved on first use if the caller hasn't resolved it already.
        :param signer: The request signer. Defaults to :py:class:`S3Signer`.
        """
        self.bucket = bucket
        self._identity = identity
        self._config = config or Config()
        self._signer = signer or S3Signer()
        self._executor: RetryingExecutor | None = None
        self._owned_http_client: AIOHTTPClient | None = None
        self._setup_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client, if this client created it."""
        if self._owned_http_client is not None:
            await self._owned_http_client.close()

    async def head_object_response(self, key: str) -> HTTPResponse:
        return await self._send(
            self._build_request(method="HEAD", destination=self.bucket.object_uri(key))
        )

    async def head_object(self, key: str) -> bool:
        """Whether an object is stored under ``key``."""
        found, _ = await self.head_object_with_metadata(key)
        return found

    async def head_object_with_metadata(self, key: str) -> tuple[bool, dict[str, str]]:
        """Whether an object is stored under ``key``, and its user metadata."""
        response = await self.head_object_response(key)
        if response.status == 404:
            return False, {}
        await self._raise_for_status(response)
        return True, extract_metadata(response.fields)

    async def get_object_response(self, key: str) -> HTTPResponse:
        return await self._send(
            self._build_request(method="GET", destination=self.bucket.object_uri(key))
        )

    async def get_object_bytes(self, key: str) -> bytes | None:
        """The raw content stored under ``key``, or ``None`` if there is none."""
        content, _ = await self._get_object(key)
        return content

    async def get_object(self, key: str) -> str | None:
        """The UTF-8 content stored under ``key``, or ``None`` if there is none."""
        content, _ = await self.get_object_with_metadata(key)
        return content

    async def get_object_with_metadata(
        self, key: str
    ) -> tuple[str | None, dict[str, str]]:
        """The UTF-8 content stored under ``key`` and its user metadata.

        A missing object yields ``(None, {})``.
        """
        content, metadata = await self._get_object(key)
        if content is None:
            return None, metadata
        return content.decode("utf-8"), metadata

    async def list_objects_response(self, prefix: str = "") -> HTTPResponse:
        return await self._send(
            self._build_request(
                method="GET", destination=self.bucket.listing_uri(prefix)
            )
        )

    async def list_objects(self, prefix: str = "") -> ListBucketResult:
        """List the objects whose key starts with ``prefix``.

        Only the first page returned by the service is read.

        :raises ResponseParseError: If the listing document isn't valid XML.
        """
        response = await self.list_objects_response(prefix)
        await self._raise_for_status(response)
        return parse_list_bucket_result(await response.consume_body_async())

    async def put_object_response(
        self,
        key: str,
        body: Body,
        metadata: Mapping[str, str] | None = None,
    ) -> HTTPResponse:
        fields = Fields([Field(name="Content-Type", values=[PUT_CONTENT_TYPE])])
        for fld in metadata_fields(metadata or {}):
            fields.set_field(fld)
        return await self._send(
            self._build_request(
                method="PUT",
                destination=self.bucket.object_uri(key),
                fields=fields,
                body=read_body(body),
            )
        )

    async def put_object(self, key: str, body: Body) -> None:
        """Store ``body`` under ``key``."""
        await self.put_object_with_metadata(key, body, {})

    async def put_object_with_metadata(
        self, key: str, body: Body, metadata: Mapping[str, str]
    ) -> None:
        """Store ``body`` under ``key`` along with user ``metadata``.

        Each metadata entry is sent as an ``x-amz-meta-{name}`` header.
        """
        response = await self.put_object_response(key, body, metadata)
        await self._raise_for_status(response)

    async def _get_object(self, key: str) -> tuple[bytes | None, dict[str, str]]:
        response = await self.get_object_response(key)
        if response.status == 404:
            return None, {}
        await self._raise_for_status(response)
        return await response.consume_body_async(), extract_metadata(response.fields)

    def _build_request(
        self,
        *,
        method: str,
        destination: URI,
        fields: Fields | None = None,
        body: bytes = b"",
    ) -> HTTPRequest:
        if not _METHOD_RE.match(method):
            raise RequestConstructionError(f"Invalid HTTP method {method!r}")
        return HTTPRequest(
            destination=destination, method=method, fields=fields, body=body
        )

    async def _send(self, request: HTTPRequest) -> HTTPResponse:
        executor, identity = await self._setup()
        _LOGGER.debug(
            "Signing %s request for bucket %s", request.method, self.bucket.name
        )
        signed_request = self._signer.sign(
            signing_properties=S3SigningProperties(bucket=self.bucket.name),
            http_request=request,
            identity=identity,
        )
        return await executor.execute(signed_request)

    async def _setup(self) -> tuple[RetryingExecutor, S3CredentialIdentity]:
        async with self._setup_lock:
            if self._executor is None:
                if not self._config.resolved:
                    await self._config.resolve()
                if self._identity is None:
                    self._identity = self._identity_from_config()
                self._executor = RetryingExecutor(
                    http_client=self._config.http_client or self._create_http_client(),
                    retry_strategy=self._config.retry_strategy
                    or BoundedRetryStrategy(policy=self._config.retry_policy),
                )
        assert self._identity is not None
        return self._executor, self._identity

    def _create_http_client(self) -> AIOHTTPClient:
        self._owned_http_client = AIOHTTPClient()
        return self._owned_http_client

    def _identity_from_config(self) -> S3CredentialIdentity:
        access_key_id = self._config.aws_access_key_id
        secret_access_key = self._config.aws_secret_access_key
        if not access_key_id or not secret_access_key:
            raise S3MetaIdentityError(
                "No credentials were supplied. Pass an identity to BucketClient or "
                "set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY."
            )
        return S3CredentialIdentity(
            access_key_id=access_key_id, secret_access_key=secret_access_key
        )

    async def _raise_for_status(self, response: HTTPResponse) -> None:
        if response.status == 200:
            return
        body = await response.consume_body_async()
        raise ServiceError(
            status=response.status,
            reason=response.reason,
            body=body.decode("utf-8", errors="replace"),
        )
