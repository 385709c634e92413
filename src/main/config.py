from functools import lru_cache
import logging
import os
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.utils.durations import parse_duration

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = frozenset(
    {
        "HS256",
        "HS384",
        "HS512",
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
    }
)


class JWTConfig(BaseModel):
    JWT_DEFAULT_ALGORITHM: str = "HS256"
    JWT_DEFAULT_EXPIRES_IN: str | None = None
    JWT_CLOCK_TOLERANCE_SECONDS: int = Field(0, ge=0)

    model_config = ConfigDict(extra="ignore")

    @field_validator("JWT_DEFAULT_ALGORITHM")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        if v not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {v}")
        return v

    @field_validator("JWT_DEFAULT_EXPIRES_IN", mode="before")
    @classmethod
    def empty_as_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("JWT_DEFAULT_EXPIRES_IN")
    @classmethod
    def validate_expires_in(cls, v: str | None) -> str | None:
        if v is not None:
            parse_duration(v)
        return v


class AppConfig(BaseModel):
    PROJECT_NAME: str = "token-lifecycle"
    VERSION: str = "0.1.0"

    LOG_LEVEL: str = "INFO"
    LOG_LEVEL_FILE: str = "WARNING"
    LOG_TO_FILE: bool = False
    LOG_DIR: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("LOG_LEVEL", "LOG_LEVEL_FILE", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> str:
        level = str(v).strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


class Config(BaseModel):
    app: AppConfig
    jwt: JWTConfig

    model_config = ConfigDict(extra="ignore")


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory. Override in tests via monkeypatching or cache_clear().
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }

    return Config(
        app=AppConfig(**merged_env),
        jwt=JWTConfig(**merged_env),
    )


config = get_settings()
