import asyncio
from collections.abc import Mapping
from datetime import datetime
import json
from typing import Any

from loggers import get_logger
from src.core.utils.datetime_utils import get_utc_now, to_epoch_seconds
from src.core.utils.durations import Duration, parse_duration
from src.main.config import config
from src.tokens.enums import ErrorCode
from src.tokens.environment import assert_environment
from src.tokens.exceptions import TokenException
from src.tokens.result import Result, from_exception, ok, unwrap
from src.tokens.schemas import Claims, SignOptions, SignRequest, coerce_model

logger = get_logger(__name__)

TIME_CLAIMS = ("exp", "iat", "nbf")

# SignOptions field -> standard claim it is embedded as
OPTION_CLAIMS = {
    "issuer": "iss",
    "audience": "aud",
    "subject": "sub",
    "jwt_id": "jti",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_payload(payload: Any) -> Claims:
    """
    Check that the payload is a non-empty JSON-serializable mapping with string keys.

    datetime values of exp/iat/nbf are converted to epoch seconds in the returned copy.

    :raises TokenException: invalid_payload
    """
    if not isinstance(payload, Mapping) or not payload:
        raise TokenException(
            ErrorCode.INVALID_PAYLOAD, "Invalid payload: Payload must be a non-empty object"
        )
    if not all(isinstance(name, str) for name in payload):
        raise TokenException(
            ErrorCode.INVALID_PAYLOAD, "Invalid payload: Claim names must be strings"
        )

    claims = dict(payload)
    for name in TIME_CLAIMS:
        if isinstance(claims.get(name), datetime):
            claims[name] = to_epoch_seconds(claims[name])

    try:
        json.dumps(claims)
    except (TypeError, ValueError, RecursionError) as exc:
        raise TokenException(
            ErrorCode.INVALID_PAYLOAD,
            f"Invalid payload: Payload is not serializable: {exc}",
            exc,
        ) from exc
    return claims


def validate_secret(secret: Any, action: str) -> None:
    if secret is None or (isinstance(secret, (str, bytes)) and not secret):
        raise TokenException(
            ErrorCode.INVALID_SECRET,
            f"Invalid secret: Secret is required for token {action}",
        )


def _relative_claim(claims: Claims, name: str, option: str, value: Duration, timestamp: float) -> None:
    if name in claims:
        raise TokenException(
            ErrorCode.SIGNING_FAILED,
            f'JWT signing failed: Bad "{option}" option, the payload already has an "{name}" property',
        )
    try:
        claims[name] = timestamp + parse_duration(value)
    except ValueError as exc:
        raise TokenException(
            ErrorCode.SIGNING_FAILED, f"JWT signing failed: {exc}", exc
        ) from exc


def build_claims(payload: Claims, options: SignOptions, now: int) -> Claims:
    """
    Merge the standard claims derived from options into a copy of the payload.

    iat defaults to now unless the payload defines it; exp and nbf are relative
    to iat. default_expires_in (then the configured default) only applies when
    expires_in is not set.
    """
    claims = dict(payload)

    iat = claims.get("iat")
    if iat is not None and not _is_number(iat):
        raise TokenException(
            ErrorCode.SIGNING_FAILED, 'JWT signing failed: "iat" should be a number of seconds'
        )
    timestamp = iat if iat is not None else now
    if options.no_timestamp:
        claims.pop("iat", None)
    else:
        claims["iat"] = timestamp

    if options.expires_in is not None:
        _relative_claim(claims, "exp", "expires_in", options.expires_in, timestamp)
    elif options.default_expires_in is not None:
        _relative_claim(claims, "exp", "default_expires_in", options.default_expires_in, timestamp)
    elif config.jwt.JWT_DEFAULT_EXPIRES_IN is not None and "exp" not in claims:
        _relative_claim(claims, "exp", "JWT_DEFAULT_EXPIRES_IN", config.jwt.JWT_DEFAULT_EXPIRES_IN, timestamp)

    if options.not_before is not None:
        _relative_claim(claims, "nbf", "not_before", options.not_before, timestamp)

    for option, name in OPTION_CLAIMS.items():
        value = getattr(options, option)
        if value is None:
            continue
        if name in claims:
            raise TokenException(
                ErrorCode.SIGNING_FAILED,
                f'JWT signing failed: Bad "{option}" option, the payload already has an "{name}" property',
            )
        claims[name] = value

    return claims


def _build_headers(options: SignOptions) -> dict[str, Any] | None:
    headers = dict(options.headers or {})
    if options.key_id is not None:
        headers["kid"] = options.key_id
    return headers or None


async def _sign(request: SignRequest | Mapping[str, Any]) -> str:
    provider = assert_environment()

    if isinstance(request, SignRequest):
        payload, secret, raw_options = request.payload, request.secret, request.options
    elif isinstance(request, Mapping):
        payload, secret, raw_options = (
            request.get("payload"),
            request.get("secret"),
            request.get("options"),
        )
    else:
        raise TokenException(
            ErrorCode.INVALID_PAYLOAD, "Invalid request: Expected a SignRequest or a mapping"
        )

    payload = validate_payload(payload)
    validate_secret(secret, "signing")

    try:
        options = coerce_model(SignOptions, raw_options)
    except (TypeError, ValueError) as exc:
        raise TokenException(
            ErrorCode.SIGNING_FAILED, f"JWT signing failed: Invalid options: {exc}", exc
        ) from exc

    claims = build_claims(payload, options, to_epoch_seconds(get_utc_now()))
    headers = _build_headers(options)

    try:
        token = await asyncio.to_thread(
            provider.sign, claims, secret, options.algorithm, headers
        )
    except Exception as exc:
        raise TokenException(
            ErrorCode.SIGNING_FAILED, f"JWT signing failed: {exc}", exc
        ) from exc

    if not token:
        raise TokenException(ErrorCode.SIGNING_FAILED, "JWT signing failed: No token generated")

    logger.debug("Signed token with %s (%d claims)", options.algorithm, len(claims))
    return str(token)


async def try_sign(request: SignRequest | Mapping[str, Any]) -> Result:
    """
    Sign a payload and return the token in a result envelope. Never raises.

    Args:
        request: SignRequest or a mapping with ``payload``, ``secret`` and optional ``options``

    Returns:
        Result: Success with the compact token, or Failure with one of
        environment_error, invalid_payload, invalid_secret, signing_failed
    """
    try:
        return ok(await _sign(request))
    except TokenException as exc:
        logger.warning("Token signing failed [%s]: %s", exc.code, exc.message)
        return from_exception(exc)


async def sign(
    claims: Mapping[str, Any],
    key: Any,
    options: SignOptions | Mapping[str, Any] | None = None,
) -> str:
    """
    Sign a payload and create a token.

    Example:
        token = await sign({"user_id": "123"}, secret, {"expires_in": "1h"})

    Raises:
        TokenException: When validation or signing fails
    """
    return unwrap(await try_sign({"payload": claims, "secret": key, "options": options}))
