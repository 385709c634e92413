from collections.abc import Mapping
import math
from typing import Any

from src.core.utils.datetime_utils import get_utc_now, to_epoch_seconds
from src.tokens.enums import ErrorCode
from src.tokens.inspection import try_decode
from src.tokens.result import Failure, Result, fail, is_error, ok, unwrap_or_none
from src.tokens.schemas import TokenRequest


def _token_of(request: TokenRequest | Mapping[str, Any] | str) -> Any:
    if isinstance(request, TokenRequest):
        return request.token
    if isinstance(request, Mapping):
        return request.get("token")
    return request


def _read_exp(request: TokenRequest | Mapping[str, Any] | str) -> float | Failure:
    decoded = try_decode({"token": _token_of(request)})
    if is_error(decoded):
        return decoded

    exp = decoded.data.get("exp")  # type: ignore[union-attr]
    if not isinstance(exp, (int, float)) or isinstance(exp, bool) or not math.isfinite(exp):
        return fail(ErrorCode.INVALID_PAYLOAD, "Token has no numeric exp claim")
    return exp


def try_is_expired(request: TokenRequest | Mapping[str, Any] | str) -> Result:
    """
    Check whether a token's exp claim lies in the past, without verifying it.

    Returns:
        Result: Success with a bool; Failure with decode_failed for an
        undecodable token or invalid_payload when there is no exp claim
    """
    exp = _read_exp(request)
    if isinstance(exp, Failure):
        return exp
    return ok(exp < to_epoch_seconds(get_utc_now()))


def try_time_until_expiry(request: TokenRequest | Mapping[str, Any] | str) -> Result:
    """Remaining whole seconds before exp, never negative. Same failures as try_is_expired."""
    exp = _read_exp(request)
    if isinstance(exp, Failure):
        return exp
    return ok(max(0, int(exp - to_epoch_seconds(get_utc_now()))))


def is_expired(token: str) -> bool | None:
    """True if expired, False if not yet, None if the token is invalid or has no exp."""
    return unwrap_or_none(try_is_expired(token))


def time_until_expiry(token: str) -> int | None:
    """Seconds until expiration, or None if the token is invalid or has no exp."""
    return unwrap_or_none(try_time_until_expiry(token))
