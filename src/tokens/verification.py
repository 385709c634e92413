import asyncio
from collections.abc import Mapping
from typing import Any

from loggers import get_logger
from src.core.utils.datetime_utils import get_utc_now, to_epoch_seconds
from src.core.utils.durations import parse_duration
from src.tokens.codec import MalformedTokenError, parse_token
from src.tokens.enums import ErrorCode
from src.tokens.environment import assert_environment
from src.tokens.exceptions import TokenException
from src.tokens.result import Result, from_exception, is_error, ok, unwrap, unwrap_or_none
from src.tokens.schemas import Claims, VerifyOptions, VerifyRequest, coerce_model
from src.tokens.signing import validate_secret

logger = get_logger(__name__)


def _unpack(request: VerifyRequest | Mapping[str, Any]) -> tuple[Any, Any, Any]:
    if isinstance(request, VerifyRequest):
        return request.token, request.secret, request.options
    if isinstance(request, Mapping):
        return request.get("token"), request.get("secret"), request.get("options")
    raise TokenException(
        ErrorCode.INVALID_TOKEN, "Invalid request: Expected a VerifyRequest or a mapping"
    )


def check_max_age(claims: Claims, options: VerifyOptions, now: int) -> None:
    """
    Reject tokens issued longer ago than options.max_age (plus clock tolerance).

    :raises TokenException: verification_failed
    """
    if options.max_age is None:
        return

    iat = claims.get("iat")
    if not isinstance(iat, (int, float)) or isinstance(iat, bool):
        raise TokenException(
            ErrorCode.VERIFICATION_FAILED,
            "JWT verification failed: iat required when max_age is specified",
        )
    if now - iat > parse_duration(options.max_age) + options.clock_tolerance:
        raise TokenException(ErrorCode.VERIFICATION_FAILED, "JWT verification failed: max_age exceeded")


async def _verify(request: VerifyRequest | Mapping[str, Any]) -> Claims:
    provider = assert_environment()

    token, secret, raw_options = _unpack(request)
    if not isinstance(token, str) or not token:
        raise TokenException(
            ErrorCode.INVALID_TOKEN, "Invalid token: Token must be a non-empty string"
        )
    validate_secret(secret, "verification")

    try:
        options = coerce_model(VerifyOptions, raw_options)
    except (TypeError, ValueError) as exc:
        raise TokenException(
            ErrorCode.VERIFICATION_FAILED,
            f"JWT verification failed: Invalid options: {exc}",
            exc,
        ) from exc

    try:
        parsed = parse_token(token)
    except MalformedTokenError as exc:
        raise TokenException(
            ErrorCode.VERIFICATION_FAILED, f"JWT verification failed: {exc}", exc
        ) from exc

    try:
        decoded = await asyncio.to_thread(provider.verify, token, secret, options)
    except Exception as exc:
        raise TokenException(
            ErrorCode.VERIFICATION_FAILED, f"JWT verification failed: {exc}", exc
        ) from exc

    if not isinstance(decoded, Mapping):
        raise TokenException(
            ErrorCode.INVALID_PAYLOAD, "Invalid payload: Expected object payload"
        )

    claims = dict(decoded)
    check_max_age(claims, options, to_epoch_seconds(get_utc_now()))

    logger.debug("Verified %s token", parsed.header.get("alg"))
    return claims


async def try_verify(request: VerifyRequest | Mapping[str, Any]) -> Result:
    """
    Verify a token and return its claims in a result envelope. Never raises,
    whatever ``throw_on_error`` says.

    Args:
        request: VerifyRequest or a mapping with ``token``, ``secret`` and optional ``options``

    Returns:
        Result: Success with the claims dict, or Failure with one of
        environment_error, invalid_token, invalid_secret, verification_failed,
        invalid_payload
    """
    try:
        return ok(await _verify(request))
    except TokenException as exc:
        logger.warning("Token verification failed [%s]: %s", exc.code, exc.message)
        return from_exception(exc)


def _throws(options: VerifyOptions | Mapping[str, Any] | None) -> bool:
    # Options that fail validation surface as an error, which is always raised
    try:
        return coerce_model(VerifyOptions, options).throw_on_error
    except (TypeError, ValueError):
        return True


async def verify(
    token: str,
    key: Any,
    options: VerifyOptions | Mapping[str, Any] | None = None,
) -> Claims | None:
    """
    Verify a token and return the decoded claims.

    Example:
        claims = await verify(token, secret, {"audience": "my-app", "issuer": "my-service"})

    Returns:
        The claims, or None when verification fails and ``throw_on_error`` is False

    Raises:
        TokenException: When verification fails and ``throw_on_error`` is True (default).
            An environment_error is raised regardless of ``throw_on_error``.
    """
    result = await try_verify({"token": token, "secret": key, "options": options})
    if _throws(options) or (
        is_error(result) and result.error.code == ErrorCode.ENVIRONMENT_ERROR
    ):
        return unwrap(result)
    return unwrap_or_none(result)
