# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
# ruff: noqa: S101
import base64
import datetime
import hmac
from copy import deepcopy
from email.utils import format_datetime
from hashlib import sha1
from typing import Required, TypedDict

from ._http import Field, Fields, HTTPRequest
from ._identity import S3CredentialIdentity
from .interfaces.identity import S3CredentialsIdentity as _S3CredentialsIdentity

AMZ_HEADER_PREFIX: str = "x-amz-"
METADATA_HEADER_PREFIX: str = "x-amz-meta-"
AUTHORIZATION_SCHEME: str = "AWS"


class S3SigningProperties(TypedDict, total=False):
    bucket: Required[str]
    host: str
    date: str


def format_http_date(value: datetime.datetime) -> str:
    """Format a datetime per RFC 1123 with a numeric zone offset.

    For example ``Tue, 27 Mar 2007 19:36:42 +0000``. Naive values are treated as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.UTC)
    return format_datetime(value.astimezone(datetime.UTC))


class S3Signer:
    """Request signer for the HMAC-SHA1 REST authentication scheme.

    See
    https://docs.aws.amazon.com/AmazonS3/latest/userguide/RESTAuthentication.html
    """

    def sign(
        self,
        *,
        signing_properties: S3SigningProperties,
        http_request: HTTPRequest,
        identity: S3CredentialIdentity,
    ) -> HTTPRequest:
        """Generate and apply a signature to a copy of the supplied request.

        The supplied request is left untouched. The returned copy carries a ``Date``
        field (when the request had none), a ``Host`` field, and the
        ``Authorization`` field.

        :param signing_properties: S3SigningProperties naming the bucket and
            optionally the reconstructed host and the date to stamp.
        :param http_request: An HTTPRequest to sign prior to sending to the service.
        :param identity: The access key pair used to key the signature.
        """
        self._validate_identity(identity=identity)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=signing_properties, request=http_request
        )
        assert "date" in new_signing_properties
        assert "host" in new_signing_properties

        new_request = self._generate_new_request(request=http_request)
        self._apply_required_fields(
            request=new_request, signing_properties=new_signing_properties
        )

        string_to_sign = self.string_to_sign(
            signing_properties=new_signing_properties, request=new_request
        )
        signature = self._signature(
            string_to_sign=string_to_sign, secret_key=identity.secret_access_key
        )

        new_request.fields.set_field(
            Field(name="Host", values=[new_signing_properties["host"]])
        )
        new_request.fields.set_field(
            self.generate_authorization_field(
                access_key_id=identity.access_key_id, signature=signature
            )
        )
        return new_request

    def generate_authorization_field(
        self, *, access_key_id: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param access_key_id: Public half of the key pair used to sign.
        :param signature: Base64 encoded HMAC-SHA1 of the string to sign.
        """
        return Field(
            name="Authorization",
            values=[f"{AUTHORIZATION_SCHEME} {access_key_id}:{signature}"],
        )

    def string_to_sign(
        self, *, signing_properties: S3SigningProperties, request: HTTPRequest
    ) -> str:
        """The string to sign lays out every request component covered by the
        signature. Comparing it against the one reported in a service
        ``SignatureDoesNotMatch`` error is the quickest way to find a mismatch.

        The scheme defines the string to sign as:
            <HTTP-Verb>\n
            <Content-MD5>\n
            <Content-Type>\n
            <Date>\n
            <CanonicalizedAmzHeaders><CanonicalizedResource>

        Content-MD5 is never computed and is always empty.

        :param signing_properties:
            S3SigningProperties naming the bucket the request targets.
        :param request:
            An HTTPRequest that already carries its ``Date`` field.
        """
        content_type = self._field_value(fields=request.fields, name="Content-Type")
        date = self._field_value(fields=request.fields, name="Date")
        amz_headers = self.canonicalized_amz_headers(fields=request.fields)
        resource = self.canonicalized_resource(
            bucket=signing_properties["bucket"], path=request.destination.path
        )
        return (
            f"{request.method.upper()}\n"
            "\n"
            f"{content_type}\n"
            f"{date}\n"
            f"{amz_headers}"
            f"{resource}"
        )

    def canonicalized_amz_headers(self, *, fields: Fields) -> str:
        """Build the ``x-amz-`` header block.

        Names are lower-cased and sorted, one ``name:value`` line per header. Values
        of a repeated header are joined with a comma. Returns the empty string when
        the request carries no ``x-amz-`` headers.
        """
        amz_fields: dict[str, list[str]] = {}
        for fld in fields:
            name = fld.name.lower()
            if name.startswith(AMZ_HEADER_PREFIX):
                amz_fields.setdefault(name, []).extend(fld.values)

        return "".join(
            f"{name}:{','.join(values)}\n"
            for name, values in sorted(amz_fields.items())
        )

    def canonicalized_resource(self, *, bucket: str, path: str | None) -> str:
        """Build the resource string from the bucket and the request path.

        The query string never takes part in the signature.
        """
        return f"/{bucket}{path or '/'}"

    def _signature(self, *, string_to_sign: str, secret_key: str) -> str:
        digest = hmac.new(
            key=secret_key.encode("utf-8"),
            msg=string_to_sign.encode("utf-8"),
            digestmod=sha1,
        ).digest()
        return base64.b64encode(digest).decode("utf-8")

    def _field_value(self, *, fields: Fields, name: str) -> str:
        fld = fields.get(name)
        if fld is None:
            return ""
        return fld.as_string()

    def _validate_identity(self, *, identity: S3CredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, _S3CredentialsIdentity):  # pyright: ignore
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"S3CredentialIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise ValueError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _normalize_signing_properties(
        self, *, signing_properties: S3SigningProperties, request: HTTPRequest
    ) -> S3SigningProperties:
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = S3SigningProperties(**signing_properties)
        if "date" not in new_signing_properties:
            date_obj = datetime.datetime.now(datetime.UTC)
            new_signing_properties["date"] = format_http_date(date_obj)
        if "host" not in new_signing_properties:
            new_signing_properties["host"] = request.destination.netloc
        return new_signing_properties

    def _generate_new_request(self, *, request: HTTPRequest) -> HTTPRequest:
        return deepcopy(request)

    def _apply_required_fields(
        self, *, request: HTTPRequest, signing_properties: S3SigningProperties
    ) -> None:
        # Apply Date only when the caller didn't supply one.
        if "Date" not in request.fields:
            assert "date" in signing_properties
            request.fields.set_field(
                Field(name="Date", values=[signing_properties["date"]])
            )
