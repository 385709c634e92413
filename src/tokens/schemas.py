from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.utils.durations import Duration, parse_duration
from src.main.config import SUPPORTED_ALGORITHMS, config

Claims = dict[str, Any]
Audience = str | list[str]

ModelT = TypeVar("ModelT", bound=BaseModel)


class Base(BaseModel):
    model_config = ConfigDict(
        extra="forbid", frozen=True, arbitrary_types_allowed=True
    )


class DurationValidationMixin(BaseModel):
    @field_validator(
        "expires_in",
        "default_expires_in",
        "not_before",
        "max_age",
        check_fields=False,
    )
    @classmethod
    def validate_duration(cls, value: Duration | None) -> Duration | None:
        if value is not None:
            parse_duration(value)
        return value


class SignOptions(DurationValidationMixin, Base):
    expires_in: Duration | None = None
    default_expires_in: Duration | None = None  # Fallback only, never overrides expires_in
    not_before: Duration | None = None

    issuer: str | None = None
    audience: Audience | None = None
    subject: str | None = None
    jwt_id: str | None = None

    algorithm: str = Field(default_factory=lambda: config.jwt.JWT_DEFAULT_ALGORITHM)
    key_id: str | None = None
    headers: dict[str, Any] | None = None
    no_timestamp: bool = False

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        if value not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {value}")
        return value


class VerifyOptions(DurationValidationMixin, Base):
    algorithms: list[str] | None = None

    issuer: Audience | None = None
    audience: Audience | None = None
    subject: str | None = None

    clock_tolerance: float = Field(
        default_factory=lambda: config.jwt.JWT_CLOCK_TOLERANCE_SECONDS, ge=0
    )
    max_age: Duration | None = None
    ignore_expiration: bool = False
    ignore_not_before: bool = False

    throw_on_error: bool = True


class DecodeOptions(Base):
    complete: bool = False


class SignRequest(Base):
    payload: Any = None
    secret: Any = Field(default=None, repr=False)
    options: SignOptions | None = None


class VerifyRequest(Base):
    token: Any = None
    secret: Any = Field(default=None, repr=False)
    options: VerifyOptions | None = None


class DecodeRequest(Base):
    token: Any = None
    options: DecodeOptions | None = None


class TokenRequest(Base):
    token: Any = None


def coerce_model(model: type[ModelT], value: ModelT | Mapping[str, Any] | None) -> ModelT:
    """
    Accept either a ready model instance or a plain mapping.

    :raises pydantic.ValidationError: If the mapping does not fit the model.
    """
    if isinstance(value, model):
        return value
    return model.model_validate(dict(value or {}))
