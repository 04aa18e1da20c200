"""Token issuance."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any

import jwt

from tokenmanager.claims import ClaimSetBuilder
from tokenmanager.config import SigningConfig
from tokenmanager.duration import TimeDuration, utcnow
from tokenmanager.errors import SigningError

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class TokenIssuer:
    """Produce compact HMAC-signed JWTs for a single signing configuration."""

    def __init__(self, config: SigningConfig, *, clock: Clock = utcnow) -> None:
        self.config = config
        self._clock = clock
        self._builder = ClaimSetBuilder(config)

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
        """Sign a new token carrying ``payload`` as custom claims.

        Parameters
        ----------
        payload
            Custom claims, stored as-is next to the registered claims.
        id
            Token id (``jti``). A random UUID is used when omitted.
        issuer, subject, audience
            Registered claims. Fall back to the configured defaults.
        expiration_time
            Token lifetime. Falls back to the configured default expiration.
            It is counted from ``not_before`` when given, otherwise from now.
        not_before
            Earliest time the token is valid, recorded verbatim as ``nbf``.

        Returns
        -------
        str
            The compact serialised token.
        """
        claim_set = self._builder.build(
            payload,
            now=self._clock(),
            id=id,
            issuer=issuer,
            subject=subject,
            audience=audience,
            expiration_time=expiration_time,
            not_before=not_before,
        )

        try:
            token = jwt.encode(
                claim_set.to_claims(),
                self.config.secret,
                algorithm=self.config.algorithm.value,
                headers={"typ": "JWT"},
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError(f"Unable to sign token {claim_set.id}: {exc}") from exc

        LOGGER.debug(
            "Issued token %s with %s", claim_set.id, self.config.algorithm.value
        )
        return token


__all__ = ["Clock", "TokenIssuer"]
