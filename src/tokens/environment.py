from functools import lru_cache
import sys

from loggers import get_logger
from src.tokens.enums import ErrorCode
from src.tokens.exceptions import TokenException
from src.tokens.providers import PrimitiveProvider, PyJWTProvider, UnavailableProvider

logger = get_logger(__name__)

# Browser and WASI interpreters have no OS entropy source or threads to run the signer on
SANDBOXED_PLATFORMS = frozenset({"emscripten", "wasi"})


def is_server_runtime(platform: str | None = None) -> bool:
    return (platform or sys.platform) not in SANDBOXED_PLATFORMS


def select_provider(platform: str | None = None) -> PrimitiveProvider:
    platform = platform or sys.platform
    if is_server_runtime(platform):
        return PyJWTProvider()
    return UnavailableProvider(
        f"Token signing and verification are not available on the '{platform}' platform"
    )


@lru_cache
def get_provider() -> PrimitiveProvider:
    """
    Process-wide primitive provider, selected once on first use.
    Tests swap it with monkeypatch or get_provider.cache_clear().
    """
    provider = select_provider()
    logger.debug("Selected primitive provider: %s", provider.name)
    return provider


def assert_environment(provider: PrimitiveProvider | None = None) -> PrimitiveProvider:
    """
    Fail fast when the current runtime cannot host the primitive provider.

    Args:
        provider: Provider to check; defaults to the process-wide one

    Returns:
        PrimitiveProvider: The provider, confirmed available

    Raises:
        TokenException: With code environment_error when the provider is unavailable
    """
    provider = provider or get_provider()
    if not provider.available:
        reason = provider.unavailable_reason or "Primitive provider is unavailable"
        logger.error("Environment check failed: %s", reason)
        raise TokenException(ErrorCode.ENVIRONMENT_ERROR, reason)
    return provider
