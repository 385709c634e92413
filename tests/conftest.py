from collections.abc import Callable
from datetime import datetime, timezone
import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

from src.main.config import Config, get_settings
from src.tokens import environment
from src.tokens.providers import UnavailableProvider
from tests.fakes.providers import FakeProvider

SECRET = "unit-test-secret-key-0123456789abcdef"


@pytest.fixture(scope="session")
def settings() -> Config:
    os.environ.setdefault("TESTING", "true")
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
def fake_provider(monkeypatch: pytest.MonkeyPatch) -> FakeProvider:
    provider = FakeProvider()
    monkeypatch.setattr(environment, "get_provider", lambda: provider)
    return provider


@pytest.fixture
def unavailable_provider(monkeypatch: pytest.MonkeyPatch) -> UnavailableProvider:
    provider = UnavailableProvider("Token operations are not available on 'emscripten'")
    monkeypatch.setattr(environment, "get_provider", lambda: provider)
    return provider


@pytest.fixture(scope="session")
def rsa_key_pair() -> tuple[str, str]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )
    return private_pem, public_pem


@pytest.fixture
def freeze_time(monkeypatch: pytest.MonkeyPatch) -> Callable[[object, int], datetime]:
    """Pin get_utc_now() in the given module to the given epoch second."""

    def _freeze(module: object, epoch_seconds: int) -> datetime:
        now = datetime.fromtimestamp(epoch_seconds, timezone.utc)
        monkeypatch.setattr(module, "get_utc_now", lambda: now)
        return now

    return _freeze
