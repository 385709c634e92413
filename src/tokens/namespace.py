from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.tokens.expiry import is_expired, time_until_expiry, try_is_expired, try_time_until_expiry
from src.tokens.inspection import decode, try_decode
from src.tokens.signing import sign, try_sign
from src.tokens.verification import try_verify, verify


@dataclass(frozen=True)
class TokenOperations:
    """The five token operations grouped under uniform names."""

    sign: Callable[..., Any]
    verify: Callable[..., Any]
    decode: Callable[..., Any]
    is_expired: Callable[..., Any]
    time_until_expiry: Callable[..., Any]


# Throwing / None-returning forms, e.g. ``await tokens.verify(token, secret)``
tokens = TokenOperations(
    sign=sign,
    verify=verify,
    decode=decode,
    is_expired=is_expired,
    time_until_expiry=time_until_expiry,
)

# Result-returning forms, e.g. ``await tokens_result.verify({"token": token, "secret": secret})``
tokens_result = TokenOperations(
    sign=try_sign,
    verify=try_verify,
    decode=try_decode,
    is_expired=try_is_expired,
    time_until_expiry=try_time_until_expiry,
)
