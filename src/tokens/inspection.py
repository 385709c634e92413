from collections.abc import Mapping
from typing import Any

from loggers import get_logger
from src.tokens.codec import MalformedTokenError, parse_token
from src.tokens.enums import ErrorCode
from src.tokens.result import Result, fail, ok, unwrap_or_none
from src.tokens.schemas import Claims, DecodeOptions, DecodeRequest, coerce_model

logger = get_logger(__name__)


def try_decode(request: DecodeRequest | Mapping[str, Any]) -> Result:
    """
    Decode a token without verifying its signature or claims.

    No key material is involved. With ``complete=True`` the data is
    ``{"header", "payload", "signature"}`` instead of the bare claims.

    Returns:
        Result: Success with the claims, or Failure with decode_failed
    """
    try:
        if isinstance(request, DecodeRequest):
            token, raw_options = request.token, request.options
        else:
            token, raw_options = request.get("token"), request.get("options")
        options = coerce_model(DecodeOptions, raw_options)
        parsed = parse_token(token)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.debug("Token decode failed: %s", exc)
        return fail(ErrorCode.DECODE_FAILED, f"JWT decode failed: {exc}", exc)

    if options.complete:
        return ok(parsed.as_complete())
    return ok(parsed.payload)


def decode(
    token: str, options: DecodeOptions | Mapping[str, Any] | None = None
) -> Claims | None:
    """
    Decode a token without verification. Never raises; returns None when the
    token cannot be decoded.
    """
    return unwrap_or_none(try_decode({"token": token, "options": options}))
