"""Token manager service shared by every call site."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from tokenmanager.claims import ClaimSet
from tokenmanager.config import Settings, SigningConfig, get_settings
from tokenmanager.duration import TimeDuration, utcnow
from tokenmanager.issuer import Clock, TokenIssuer
from tokenmanager.validator import TokenValidator, ValidationResult


class TokenManager:
    """Issue and validate tokens for one signing configuration.

    The manager holds no mutable state, so a single instance can be shared
    across threads.
    """

    def __init__(self, config: SigningConfig, *, clock: Clock = utcnow) -> None:
        self.config = config
        self._issuer = TokenIssuer(config, clock=clock)
        self._validator = TokenValidator(config, clock=clock)

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, *, clock: Clock = utcnow
    ) -> "TokenManager":
        """Create a manager from application settings."""
        if settings is None:
            settings = get_settings()
        return cls(settings.hmac.to_signing_config(), clock=clock)

    def generate(
        self,
        payload: Mapping[str, Any],
        *,
        id: str | None = None,
        issuer: str | None = None,
        subject: str | None = None,
        audience: str | Sequence[str] | None = None,
        expiration_time: TimeDuration | Mapping[str, Any] | str | None = None,
        not_before: datetime | int | str | None = None,
    ) -> str:
        return self._issuer.generate(
            payload,
            id=id,
            issuer=issuer,
            subject=subject,
            audience=audience,
            expiration_time=expiration_time,
            not_before=not_before,
        )

    def validate(
        self,
        token: str,
        check_expiration: bool = True,
        check_not_before: bool = False,
    ) -> bool:
        return self._validator.validate(token, check_expiration, check_not_before)

    def evaluate(
        self,
        token: str,
        check_expiration: bool = True,
        check_not_before: bool = False,
    ) -> ValidationResult:
        return self._validator.evaluate(token, check_expiration, check_not_before)

    def get_claims(self, token: str) -> ClaimSet:
        return self._validator.get_claims(token)

    def get_claim(self, token: str, name: str) -> Any:
        return self._validator.get_claim(token, name)


class AsyncTokenManager:
    """Coroutine facade over :class:`TokenManager` for asyncio callers."""

    def __init__(self, manager: TokenManager) -> None:
        self.manager = manager

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, *, clock: Clock = utcnow
    ) -> "AsyncTokenManager":
        return cls(TokenManager.from_settings(settings, clock=clock))

    async def generate(self, payload: Mapping[str, Any], **kwargs: Any) -> str:
        return await asyncio.to_thread(self.manager.generate, payload, **kwargs)

    async def validate(
        self,
        token: str,
        check_expiration: bool = True,
        check_not_before: bool = False,
    ) -> bool:
        return await asyncio.to_thread(
            self.manager.validate, token, check_expiration, check_not_before
        )

    async def evaluate(
        self,
        token: str,
        check_expiration: bool = True,
        check_not_before: bool = False,
    ) -> ValidationResult:
        return await asyncio.to_thread(
            self.manager.evaluate, token, check_expiration, check_not_before
        )

    async def get_claims(self, token: str) -> ClaimSet:
        return await asyncio.to_thread(self.manager.get_claims, token)

    async def get_claim(self, token: str, name: str) -> Any:
        return await asyncio.to_thread(self.manager.get_claim, token, name)


__all__ = ["AsyncTokenManager", "TokenManager"]
