"""Pytest configuration for the token manager test-suite."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from tokenmanager.config import SigningConfig, reload_settings
from tokenmanager.duration import TimeDuration

SECRETS = {
    "HS256": "s" * 32,
    "HS384": "s" * 48,
    "HS512": "s" * 64,
}


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep host environment variables and .env files out of the tests."""
    for name in list(os.environ):
        if name.startswith("TOKENMANAGER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reload_settings()
    yield
    reload_settings()


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a whole second."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def config() -> SigningConfig:
    """HS256 configuration with a one hour default lifetime."""
    return SigningConfig.validate(
        algorithm="HS256",
        secret=SECRETS["HS256"],
        default_expiration=TimeDuration("hours", 1),
    )
