#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from typing import Protocol, TypeAlias, runtime_checkable

from ._http import Field, Fields
from .interfaces.http import Fields as FieldsInterface
from .signers import METADATA_HEADER_PREFIX


@runtime_checkable
class BytesReader(Protocol):
    """A file-like object with a read method that returns bytes."""

    def read(self, size: int = -1, /) -> bytes: ...


Body: TypeAlias = bytes | bytearray | str | BytesReader
"""Accepted object payloads. Streams are read exactly once."""


def read_body(body: Body) -> bytes:
    """Buffer a payload so it can be sent again on every attempt.

    :param body: The payload to buffer. ``str`` payloads are UTF-8 encoded.
    """
    match body:
        case bytes():
            return body
        case bytearray():
            return bytes(body)
        case str():
            return body.encode("utf-8")
        case BytesReader():
            return body.read()
        case _:
            raise TypeError(
                f"Expected bytes, str, or a readable byte stream, but was {type(body)}"
            )


def metadata_fields(metadata: Mapping[str, str]) -> Fields:
    """Build one ``x-amz-meta-{key}`` field per metadata entry."""
    return Fields(
        Field(name=f"{METADATA_HEADER_PREFIX}{key}", values=[value])
        for key, value in metadata.items()
    )


def extract_metadata(fields: FieldsInterface) -> dict[str, str]:
    """Collect user metadata from ``x-amz-meta-`` headers.

    Keys are the lower-cased header names with the prefix removed. Repeated headers
    are joined with a comma.
    """
    metadata: dict[str, str] = {}
    for fld in fields:
        name = fld.name.lower()
        if name.startswith(METADATA_HEADER_PREFIX):
            metadata[name.removeprefix(METADATA_HEADER_PREFIX)] = fld.as_string()
    return metadata
