import asyncio
from datetime import datetime, timezone

import jwt
import pytest

from src.tokens import (
    ErrorCode,
    TokenException,
    VerifyOptions,
    VerifyRequest,
    is_error,
    is_success,
    sign,
    try_verify,
    verify,
)
from src.tokens.codec import assemble_token, b64url_encode, encode_segment
from tests.fakes.providers import FakeProvider


def _tamper_signature(token: str) -> str:
    header, payload, signature = token.split(".")
    first = "B" if signature[0] != "B" else "C"
    return f"{header}.{payload}.{first}{signature[1:]}"


@pytest.mark.asyncio
async def test_verify_round_trip_returns_all_claims(secret: str) -> None:
    claims = {"user_id": "123", "role": "admin", "active": True, "level": 3}
    token = await sign(claims, secret, {"expires_in": "1h"})

    decoded = await verify(token, secret)

    assert decoded is not None
    for name, value in claims.items():
        assert decoded[name] == value
    assert decoded["exp"] - decoded["iat"] == 3600


@pytest.mark.asyncio
async def test_verify_with_matching_standard_claims(secret: str) -> None:
    options = {"issuer": "my-service", "audience": "my-app", "subject": "user-auth"}
    token = await sign({"permissions": ["read"]}, secret, options)

    result = await try_verify({"token": token, "secret": secret, "options": options})

    assert is_success(result)
    assert result.data["permissions"] == ["read"]


@pytest.mark.asyncio
async def test_verify_accepts_audience_and_issuer_lists(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret, {"issuer": "svc-a", "audience": "app-b"})

    decoded = await verify(
        token, secret, {"issuer": ["svc-a", "svc-z"], "audience": ["app-a", "app-b"]}
    )

    assert decoded is not None
    assert decoded["aud"] == "app-b"


@pytest.mark.asyncio
async def test_verify_without_expectations_ignores_token_audience(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret, {"audience": "my-app"})

    assert await verify(token, secret) is not None


@pytest.mark.asyncio
async def test_tampered_signature_fails_verification(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret)

    result = await try_verify({"token": _tamper_signature(token), "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED
    assert isinstance(result.error.cause, jwt.InvalidSignatureError)


@pytest.mark.asyncio
async def test_wrong_secret_fails_verification(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret)

    with pytest.raises(TokenException) as exc_info:
        await verify(token, "another-secret-key-0123456789abcdef")

    assert exc_info.value.code == ErrorCode.VERIFICATION_FAILED
    assert exc_info.value.message.startswith("JWT verification failed:")


@pytest.mark.asyncio
async def test_expired_token_fails_with_verification_failed(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret, {"expires_in": "-1s"})

    result = await try_verify({"token": token, "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED
    assert isinstance(result.error.cause, jwt.ExpiredSignatureError)


@pytest.mark.asyncio
async def test_expired_token_passes_with_ignore_expiration_or_tolerance(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret, {"expires_in": "-5s"})

    assert await verify(token, secret, {"ignore_expiration": True}) is not None
    assert await verify(token, secret, {"clock_tolerance": 60}) is not None


@pytest.mark.asyncio
async def test_not_yet_valid_token_fails(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret, {"not_before": "1h"})

    result = await try_verify({"token": token, "secret": secret})
    ignored = await try_verify(
        {"token": token, "secret": secret, "options": {"ignore_not_before": True}}
    )

    assert is_error(result)
    assert isinstance(result.error.cause, jwt.ImmatureSignatureError)
    assert is_success(ignored)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "options",
    [{"issuer": "other-service"}, {"audience": "other-app"}, {"subject": "someone-else"}],
)
async def test_standard_claim_mismatch_fails(options: dict, secret: str) -> None:
    token = await sign(
        {"user_id": "1"},
        secret,
        {"issuer": "my-service", "audience": "my-app", "subject": "user-auth"},
    )

    result = await try_verify({"token": token, "secret": secret, "options": options})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED


@pytest.mark.asyncio
async def test_max_age_rejects_old_tokens(secret: str) -> None:
    issued = int(datetime.now(timezone.utc).timestamp()) - 120
    token = await sign({"user_id": "1", "iat": issued}, secret)

    too_old = await try_verify({"token": token, "secret": secret, "options": {"max_age": "1m"}})
    fresh_enough = await try_verify(
        {"token": token, "secret": secret, "options": {"max_age": "5m"}}
    )

    assert is_error(too_old)
    assert too_old.error.message == "JWT verification failed: max_age exceeded"
    assert is_success(fresh_enough)


@pytest.mark.asyncio
async def test_max_age_requires_iat(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret, {"no_timestamp": True})

    result = await try_verify({"token": token, "secret": secret, "options": {"max_age": "1h"}})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", None, 123])
async def test_invalid_token_input(token: object, secret: str) -> None:
    result = await try_verify({"token": token, "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.INVALID_TOKEN


@pytest.mark.asyncio
async def test_invalid_token_takes_precedence_over_invalid_secret() -> None:
    with pytest.raises(TokenException) as exc_info:
        await verify("", "")

    assert exc_info.value.code == ErrorCode.INVALID_TOKEN


@pytest.mark.asyncio
async def test_empty_secret_is_rejected(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret)

    result = await try_verify(VerifyRequest(token=token, secret=""))

    assert is_error(result)
    assert result.error.code == ErrorCode.INVALID_SECRET


@pytest.mark.asyncio
async def test_malformed_token_fails_verification(secret: str) -> None:
    result = await try_verify({"token": "invalid-token", "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED


@pytest.mark.asyncio
async def test_unknown_verify_option_fails_verification(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret)

    result = await try_verify(
        {"token": token, "secret": secret, "options": {"audiences": "typo"}}
    )

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED


@pytest.mark.asyncio
async def test_throw_on_error_false_returns_none(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret)

    assert await verify("invalid-token", secret, {"throw_on_error": False}) is None
    assert await verify("", secret, {"throw_on_error": False}) is None
    assert await verify(token, "", VerifyOptions(throw_on_error=False)) is None
    assert await verify(_tamper_signature(token), secret, {"throw_on_error": False}) is None


@pytest.mark.asyncio
async def test_throw_on_error_false_still_returns_claims(secret: str) -> None:
    token = await sign({"user_id": "1"}, secret)

    decoded = await verify(token, secret, {"throw_on_error": False})

    assert decoded is not None
    assert decoded["user_id"] == "1"


@pytest.mark.asyncio
async def test_result_form_ignores_throw_on_error(secret: str) -> None:
    result = await try_verify(
        {"token": "invalid-token", "secret": secret, "options": {"throw_on_error": True}}
    )

    assert is_error(result)


@pytest.mark.asyncio
async def test_non_object_payload_from_provider_is_invalid_payload(
    fake_provider: FakeProvider, secret: str
) -> None:
    fake_provider.verify_result = "just-a-string"
    token = assemble_token({"alg": "HS256", "typ": "JWT"}, {"user_id": "1"}, b"sig")

    result = await try_verify({"token": token, "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.INVALID_PAYLOAD
    assert len(fake_provider.verify_calls) == 1


@pytest.mark.asyncio
async def test_provider_not_called_for_malformed_token(
    fake_provider: FakeProvider, secret: str
) -> None:
    result = await try_verify({"token": "a.b", "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED
    assert fake_provider.verify_calls == []


@pytest.mark.asyncio
async def test_environment_error_raises_even_without_throw_on_error(
    unavailable_provider, secret: str
) -> None:
    with pytest.raises(TokenException) as exc_info:
        await verify("a.b.c", secret, {"throw_on_error": False})

    assert exc_info.value.code == ErrorCode.ENVIRONMENT_ERROR


@pytest.mark.asyncio
async def test_rsa_round_trip_with_default_algorithms(rsa_key_pair: tuple[str, str]) -> None:
    private_pem, public_pem = rsa_key_pair
    token = await sign({"user_id": "1"}, private_pem, {"algorithm": "RS256"})

    decoded = await verify(token, public_pem)

    assert decoded is not None
    assert decoded["user_id"] == "1"


@pytest.mark.asyncio
async def test_public_key_is_not_accepted_as_hmac_secret(
    rsa_key_pair: tuple[str, str], secret: str
) -> None:
    _, public_pem = rsa_key_pair
    token = await sign({"user_id": "1"}, secret)

    result = await try_verify({"token": token, "secret": public_pem})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED


@pytest.mark.asyncio
async def test_concurrent_sign_and_verify_do_not_interfere(secret: str) -> None:
    tokens = await asyncio.gather(*(sign({"n": n}, secret) for n in range(20)))

    decoded = await asyncio.gather(*(verify(token, secret) for token in tokens))

    assert [claims["n"] for claims in decoded] == list(range(20))


@pytest.mark.asyncio
async def test_deeply_nested_payload_fails_verification(secret: str) -> None:
    nested = b'{"a":' + b"[" * 100_000 + b"]" * 100_000 + b"}"
    token = f"{encode_segment({'alg': 'HS256', 'typ': 'JWT'})}.{b64url_encode(nested)}.sig"

    result = await try_verify({"token": token, "secret": secret})

    assert is_error(result)
    assert result.error.code == ErrorCode.VERIFICATION_FAILED
    assert await verify(token, secret, {"throw_on_error": False}) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("flag", ["false", "no", 0])
async def test_throw_on_error_accepts_coercible_values(flag: object, secret: str) -> None:
    assert await verify("invalid-token", secret, {"throw_on_error": flag}) is None


@pytest.mark.asyncio
async def test_invalid_options_are_raised_from_verify(secret: str) -> None:
    with pytest.raises(TokenException) as exc_info:
        await verify("invalid-token", secret, {"throw_on_error": False, "unknown": 1})

    assert exc_info.value.code == ErrorCode.VERIFICATION_FAILED
