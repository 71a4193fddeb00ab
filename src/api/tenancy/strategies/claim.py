"""Resolve the tenant from a JWT claim.

The token is read from a header (``Authorization: Bearer <token>`` by
default) or from a cookie. By default the payload is decoded without
checking the signature; with ``verify=True`` the token is verified with
python-jose against ``secret``. Verification here is a convenience, not an
authentication boundary.

Options:
    header: Header holding the token (default: ``authorization``).
    header_prefix: Prefix the header value must start with
        (default: ``"Bearer "``). ``None`` or ``""`` accepts the raw value.
    cookie: Cookie holding the token. Takes precedence over ``header``.
    claim: Claim name, dot-separated for nested claims (default: ``tenant_id``).
    verify: Verify the signature (default: False).
    secret: Verification key, required when ``verify`` is true.
    algorithm: Verification algorithm (default: ``HS256``).
    transform: Optional one-argument callable applied to the claim value.

Example payloads:
    {"tenant_id": "tenant-123"}                  claim="tenant_id"
    {"user": {"tenant_id": "nested-tenant"}}     claim="user.tenant_id"
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jose import jwt
from jose.exceptions import JOSEError

from tenancy.outcomes import NOT_FOUND, Failed, Outcome
from tenancy.strategies.base import (
    BuiltinStrategy,
    Transform,
    apply_transform,
    first_error,
    validate_string,
    validate_transform,
)

if TYPE_CHECKING:
    from tenancy.pipeline import PipelineConfig
    from tenancy.request import RequestLike


DEFAULT_HEADER = "authorization"
DEFAULT_HEADER_PREFIX = "Bearer "
DEFAULT_CLAIM = "tenant_id"
DEFAULT_ALGORITHM = "HS256"

_BASE64URL = re.compile(r"[A-Za-z0-9_-]*={0,2}")


class _TokenError(Exception):
    """Internal signal carrying the reason a token could not be read."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ClaimStrategy(BuiltinStrategy):
    """Read the tenant from a (possibly nested) claim of a JWT."""

    name = "jwt"
    OPTIONS = (
        "header",
        "header_prefix",
        "cookie",
        "claim",
        "verify",
        "secret",
        "algorithm",
        "transform",
    )

    def __init__(
        self,
        header: str | None = DEFAULT_HEADER,
        header_prefix: str | None = DEFAULT_HEADER_PREFIX,
        cookie: str | None = None,
        claim: str | None = DEFAULT_CLAIM,
        verify: bool | None = False,
        secret: str | None = None,
        algorithm: str | None = DEFAULT_ALGORITHM,
        transform: Transform | None = None,
    ):
        self._raise_if_invalid(
            {
                "header": header,
                "header_prefix": header_prefix,
                "cookie": cookie,
                "claim": claim,
                "verify": verify,
                "secret": secret,
                "algorithm": algorithm,
                "transform": transform,
            }
        )
        self.header_name = header or DEFAULT_HEADER
        self.header_prefix = header_prefix
        self.cookie = cookie
        self.claim = claim or DEFAULT_CLAIM
        self.verify = bool(verify)
        self.secret = secret
        self.algorithm = algorithm or DEFAULT_ALGORITHM
        self.transform = transform

    @classmethod
    def validate_config(cls, options: Mapping[str, Any]) -> str | None:
        return first_error(
            validate_string(options, "header"),
            validate_string(options, "header_prefix"),
            validate_string(options, "cookie"),
            validate_string(options, "claim"),
            _validate_verify(options.get("verify"), options.get("secret")),
            validate_string(options, "algorithm"),
            validate_transform(options),
        )

    def extract(self, request: RequestLike, config: PipelineConfig) -> Outcome:
        token = self._locate_token(request)
        if token is None:
            return NOT_FOUND

        try:
            payload = self._decode(token)
        except _TokenError as e:
            return Failed(e.reason)

        value = lookup_claim(payload, self.claim)
        if value is None:
            return NOT_FOUND
        return apply_transform(self.transform, value, "JWT claim")

    def _locate_token(self, request: RequestLike) -> str | None:
        if self.cookie:
            raw = request.cookies.get(self.cookie)
            return (raw or "").strip() or None

        raw = request.header(self.header_name)
        if raw is None:
            return None
        if self.header_prefix:
            if not raw.startswith(self.header_prefix):
                return None
            raw = raw[len(self.header_prefix) :]
        return raw.strip() or None

    def _decode(self, token: str) -> Any:
        if self.verify:
            return self._decode_verified(token)
        return decode_unverified(token)

    def _decode_verified(self, token: str) -> Any:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_aud": False},
            )
        except JOSEError as e:
            raise _TokenError("JWT verification failed") from e

    def __repr__(self) -> str:
        source = f"cookie={self.cookie!r}" if self.cookie else f"header={self.header_name!r}"
        return f"ClaimStrategy({source}, claim={self.claim!r})"


def decode_unverified(token: str) -> Any:
    """Decode the payload segment of a JWT without checking its signature.

    Accepts two segments (no signature) or three.

    Raises:
        _TokenError: With the message reported to the pipeline.
    """
    segments = token.split(".")
    if len(segments) not in (2, 3):
        raise _TokenError("Invalid JWT format")
    return _decode_segment(segments[1])


def _decode_segment(segment: str) -> Any:
    if not _BASE64URL.fullmatch(segment):
        raise _TokenError("Invalid base64 encoding in JWT payload")
    try:
        raw = base64.b64decode(_pad(segment), altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise _TokenError("Invalid base64 encoding in JWT payload") from e
    try:
        return json.loads(raw)
    except ValueError as e:
        raise _TokenError("Invalid JSON in JWT payload") from e


def _pad(segment: str) -> str:
    if "=" in segment:
        return segment
    remainder = len(segment) % 4
    if remainder == 2:
        return segment + "=="
    if remainder == 3:
        return segment + "="
    return segment


def lookup_claim(payload: Any, claim: str) -> Any:
    """Walk a dot-separated claim path through nested mappings.

    Returns None when a key is missing, its value is null, or a non-mapping
    is reached before the path is exhausted.
    """
    value = payload
    for part in claim.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
        if value is None:
            return None
    return value


def _validate_verify(verify: Any, secret: Any) -> str | None:
    if verify is None or verify is False:
        return None
    if verify is not True:
        return "verify must be a boolean"
    if secret is None:
        return "secret is required when verify is true"
    if not isinstance(secret, str):
        return "secret must be a string"
    return None
