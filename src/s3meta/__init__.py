# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Signed, retried access to objects and their user metadata in an S3 bucket."""

from ._http import URI, Field, Fields, HTTPRequest
from ._identity import S3CredentialIdentity
from .client import Bucket, BucketClient
from .config import Config
from .deserializers import BucketItem, ListBucketResult
from .retries import BoundedRetryStrategy, RetryPolicy
from .signers import S3Signer, S3SigningProperties

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "BoundedRetryStrategy",
    "Bucket",
    "BucketClient",
    "BucketItem",
    "Config",
    "Field",
    "Fields",
    "HTTPRequest",
    "ListBucketResult",
    "RetryPolicy",
    "S3CredentialIdentity",
    "S3Signer",
    "S3SigningProperties",
)
