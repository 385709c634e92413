from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_TOKEN = "invalid_token"  # Token missing, empty or not a string
    INVALID_SECRET = "invalid_secret"  # Key material missing or empty
    INVALID_PAYLOAD = "invalid_payload"  # Claims not a usable mapping
    SIGNING_FAILED = "signing_failed"
    VERIFICATION_FAILED = "verification_failed"
    DECODE_FAILED = "decode_failed"
    TOKEN_EXPIRED = "token_expired"
    ENVIRONMENT_ERROR = "environment_error"  # Runtime cannot host the primitive provider

    @classmethod
    def values(cls) -> set[str]:
        return {item.value for item in cls.__members__.values()}


class ResultStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
