# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field


class S3MetaError(Exception):
    """Base exception type for all exceptions raised by s3meta."""


class RequestConstructionError(S3MetaError, ValueError):
    """Raised when a request can't be built from the supplied bucket, key, or method.

    These errors are never retried.
    """


class TransportError(S3MetaError):
    """Failure to complete an HTTP exchange.

    Connection refused, DNS failures, timeouts, and redirects to unusable targets
    are all reported as transport errors. They are the only errors retried by
    :py:class:`s3meta.aio.executor.RetryingExecutor`.
    """


@dataclass(kw_only=True)
class ServiceError(S3MetaError):
    """The service answered with a status other than 200 (or 404 for reads)."""

    status: int
    """The 3 digit response status code."""

    reason: str | None = None
    """Optional string provided by the server explaining the status."""

    body: str = field(default="", repr=False)
    """The decoded response body, usually an XML error document."""

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str:
        status_line = str(self.status)
        if self.reason:
            status_line = f"{status_line} {self.reason}"
        if self.body:
            return f"{status_line}: {self.body}"
        return status_line


class ResponseParseError(S3MetaError):
    """A response body could not be decoded."""


class RetryError(S3MetaError):
    """Base exception type for all exceptions raised in retry strategies."""


class S3MetaIdentityError(S3MetaError):
    """No usable credentials were supplied or resolved."""
