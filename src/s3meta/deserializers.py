#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from datetime import datetime
from xml.etree import ElementTree as ET

from .exceptions import ResponseParseError


@dataclass(kw_only=True, frozen=True)
class BucketItem:
    """A single ``Contents`` entry of a bucket listing."""

    key: str
    last_modified: datetime | None = None
    body: str = ""
    """Inline body content, when the service returns one."""


@dataclass(kw_only=True, frozen=True)
class ListBucketResult:
    """Objects in a bucket, in the order the service listed them."""

    name: str | None = None
    prefix: str | None = None
    contents: list[BucketItem] = field(default_factory=list)


def _local_name(tag: str) -> str:
    # Drop any "{namespace}" qualifier.
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> str | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child.text or ""
    return None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ResponseParseError(f"Invalid LastModified timestamp: {value!r}") from e


def parse_list_bucket_result(body: bytes) -> ListBucketResult:
    """Decode a ``ListBucketResult`` XML document.

    Elements are matched by local name, so documents with or without the service
    namespace are accepted.

    :param body: The raw response payload.
    :raises ResponseParseError: If the payload isn't well-formed XML.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ResponseParseError(f"Unable to parse bucket listing: {e}") from e

    contents = [
        BucketItem(
            key=_child_text(entry, "Key") or "",
            last_modified=_parse_timestamp(_child_text(entry, "LastModified")),
            body=_child_text(entry, "Body") or "",
        )
        for entry in root
        if _local_name(entry.tag) == "Contents"
    ]
    return ListBucketResult(
        name=_child_text(root, "Name"),
        prefix=_child_text(root, "Prefix"),
        contents=contents,
    )
