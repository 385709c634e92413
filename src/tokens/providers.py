"""
Cryptographic primitive providers.

The token engines never sign or verify bytes themselves; they hand the
work to a PrimitiveProvider. PyJWTProvider is the real implementation,
UnavailableProvider stands in on hosts that cannot run it.
"""

from collections.abc import Sequence
from typing import Any, Protocol

import jwt

from src.tokens.schemas import Claims, VerifyOptions

HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]
ASYMMETRIC_ALGORITHMS = [
    "RS256",
    "RS384",
    "RS512",
    "PS256",
    "PS384",
    "PS512",
    "ES256",
    "ES384",
    "ES512",
    "EdDSA",
]

_PEM_PUBLIC_MARKERS = ("-----BEGIN PUBLIC KEY", "-----BEGIN RSA PUBLIC KEY", "ssh-")


class PrimitiveProvider(Protocol):
    name: str
    available: bool
    unavailable_reason: str | None

    def sign(
        self,
        claims: Claims,
        key: Any,
        algorithm: str,
        headers: dict[str, Any] | None = None,
    ) -> str: ...

    def verify(self, token: str, key: Any, options: VerifyOptions) -> Any: ...


def default_algorithms_for_key(key: Any) -> list[str]:
    """
    Pick the algorithm allow-list used when the caller does not pass one.

    Shared secrets only ever verify HMAC tokens; PEM public keys and key
    objects only ever verify asymmetric tokens.
    """
    if isinstance(key, bytes):
        text = key.decode("utf-8", errors="ignore")
    elif isinstance(key, str):
        text = key
    else:
        return list(ASYMMETRIC_ALGORITHMS)

    if text.lstrip().startswith(_PEM_PUBLIC_MARKERS) or "-----BEGIN CERTIFICATE" in text:
        return list(ASYMMETRIC_ALGORITHMS)
    return list(HMAC_ALGORITHMS)


def _as_sequence(value: str | Sequence[str] | None) -> str | list[str] | None:
    if value is None or isinstance(value, str):
        return value
    return list(value)


class PyJWTProvider:
    name = "pyjwt"
    available = True
    unavailable_reason: str | None = None

    def sign(
        self,
        claims: Claims,
        key: Any,
        algorithm: str,
        headers: dict[str, Any] | None = None,
    ) -> str:
        return jwt.encode(claims, key, algorithm=algorithm, headers=headers)

    def verify(self, token: str, key: Any, options: VerifyOptions) -> Any:
        algorithms = options.algorithms or default_algorithms_for_key(key)
        require = ["iat"] if options.max_age is not None else []

        return jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=_as_sequence(options.audience),
            issuer=_as_sequence(options.issuer),
            subject=options.subject,
            leeway=options.clock_tolerance,
            options={
                "verify_signature": True,
                "verify_exp": not options.ignore_expiration,
                "verify_nbf": not options.ignore_not_before,
                "verify_aud": options.audience is not None,
                "verify_iss": options.issuer is not None,
                "verify_sub": options.subject is not None,
                "require": require,
            },
        )


class UnavailableProvider:
    """Stub selected on hosts that cannot run the cryptographic primitives."""

    name = "unavailable"
    available = False

    def __init__(self, reason: str):
        self.unavailable_reason: str | None = reason

    def sign(
        self,
        claims: Claims,
        key: Any,
        algorithm: str,
        headers: dict[str, Any] | None = None,
    ) -> str:
        raise RuntimeError(self.unavailable_reason)

    def verify(self, token: str, key: Any, options: VerifyOptions) -> Any:
        raise RuntimeError(self.unavailable_reason)
