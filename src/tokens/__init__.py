"""
Signed token lifecycle: sign, verify, decode and expiry checks for compact
JWTs, with a throwing API and a result-returning API over the same logic.
"""

from src.tokens.enums import ErrorCode
from src.tokens.environment import assert_environment
from src.tokens.exceptions import TokenException
from src.tokens.expiry import is_expired, time_until_expiry, try_is_expired, try_time_until_expiry
from src.tokens.inspection import decode, try_decode
from src.tokens.namespace import TokenOperations, tokens, tokens_result
from src.tokens.result import (
    ErrorDetail,
    Failure,
    Result,
    Success,
    is_error,
    is_success,
    unwrap,
    unwrap_or_none,
)
from src.tokens.schemas import (
    DecodeOptions,
    DecodeRequest,
    SignOptions,
    SignRequest,
    TokenRequest,
    VerifyOptions,
    VerifyRequest,
)
from src.tokens.signing import sign, try_sign
from src.tokens.verification import try_verify, verify

__all__ = [
    "ErrorCode",
    "TokenException",
    "assert_environment",
    "sign",
    "verify",
    "decode",
    "is_expired",
    "time_until_expiry",
    "try_sign",
    "try_verify",
    "try_decode",
    "try_is_expired",
    "try_time_until_expiry",
    "tokens",
    "tokens_result",
    "TokenOperations",
    "Result",
    "Success",
    "Failure",
    "ErrorDetail",
    "is_success",
    "is_error",
    "unwrap",
    "unwrap_or_none",
    "SignOptions",
    "VerifyOptions",
    "DecodeOptions",
    "SignRequest",
    "VerifyRequest",
    "DecodeRequest",
    "TokenRequest",
]
