"""Pytest configuration and fixtures."""

import pytest

from hmacauth.common.settings import Settings
from hmacauth.core.config import SigningConfig
from hmacauth.core.signer import Signer
from hmacauth.core.verifier import Verifier

SECRET = "a" * 32
T0 = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at T0."""
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(secret=SECRET)


@pytest.fixture
def config() -> SigningConfig:
    """Signing config with the test secret."""
    return SigningConfig(secret=SECRET)


@pytest.fixture
def signer(config: SigningConfig, clock: FakeClock) -> Signer:
    return Signer(config, clock=clock)


@pytest.fixture
def verifier(config: SigningConfig, clock: FakeClock) -> Verifier:
    return Verifier(config, clock=clock)
