"""Token parsing and validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import jwt

from tokenmanager.claims import ClaimSet
from tokenmanager.config import SigningConfig
from tokenmanager.duration import utcnow
from tokenmanager.errors import MalformedToken, MissingNotBeforeClaim, TokenError
from tokenmanager.issuer import Clock
from tokenmanager.logging_setup import TRACE_LEVEL

LOGGER = logging.getLogger(__name__)


class TokenState(str, Enum):
    """Terminal states of token validation."""

    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one token.

    ``error`` is set only in the ``ERROR`` state. ``claims`` is set once the
    signature has been verified.
    """

    state: TokenState
    error: TokenError | None = None
    claims: ClaimSet | None = None

    def __post_init__(self) -> None:
        if self.state is TokenState.ERROR and self.error is None:
            raise ValueError("An error result must carry the error")
        if self.state is not TokenState.ERROR and self.error is not None:
            raise ValueError(f"A {self.state.value} result cannot carry an error")

    @property
    def is_valid(self) -> bool:
        return self.state is TokenState.VALID

    def __bool__(self) -> bool:
        return self.is_valid

    def unwrap(self) -> bool:
        """Return the boolean outcome, raising the carried error if any."""
        if self.error is not None:
            raise self.error
        return self.is_valid


def parse_claims(token: Any) -> dict[str, Any]:
    """Decode the claims of a compact token without checking its signature.

    Raises
    ------
    MalformedToken
        If the token is not three base64url segments holding JSON objects.
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise MalformedToken(f"Malformed token: {exc}") from exc


class TokenValidator:
    """Validate tokens signed under a single signing configuration."""

    def __init__(self, config: SigningConfig, *, clock: Clock = utcnow) -> None:
        self.config = config
        self._clock = clock
        self._jws = jwt.PyJWS()

    def validate(
        self,
        token: str,
        check_expiration: bool = True,
        check_not_before: bool = False,
    ) -> bool:
        """Return whether ``token`` is valid.

        Raises
        ------
        MalformedToken
            If the token cannot be parsed.
        MissingNotBeforeClaim
            If ``check_not_before`` is requested for a token without ``nbf``.
        """
        return self.evaluate(
            token,
            check_expiration=check_expiration,
            check_not_before=check_not_before,
        ).unwrap()

    def evaluate(
        self,
        token: str,
        check_expiration: bool = True,
        check_not_before: bool = False,
    ) -> ValidationResult:
        """Run the validation steps and report the terminal state without raising."""
        try:
            claims = ClaimSet.from_claims(parse_claims(token))
        except MalformedToken as exc:
            LOGGER.debug("Rejecting malformed token: %s", exc)
            return ValidationResult(TokenState.ERROR, error=exc)
        LOGGER.log(TRACE_LEVEL, "Parsed token %s", claims.id)

        if not self._verify_signature(token):
            return ValidationResult(TokenState.INVALID)
        LOGGER.log(TRACE_LEVEL, "Signature verified for token %s", claims.id)

        now = self._clock()

        if check_expiration:
            if not self._within_expiration(claims, now):
                LOGGER.debug("Token %s has expired", claims.id)
                return ValidationResult(TokenState.INVALID, claims=claims)
            LOGGER.log(
                TRACE_LEVEL,
                "Token %s within expiration %s at %s",
                claims.id,
                claims.expiration_time,
                now,
            )

        if check_not_before:
            if claims.not_before is None:
                error = MissingNotBeforeClaim(
                    f"Token {claims.id} does not define a not-before time"
                )
                return ValidationResult(TokenState.ERROR, error=error, claims=claims)
            if not isinstance(claims.not_before, datetime) or now < claims.not_before:
                LOGGER.debug("Token %s is not valid yet", claims.id)
                return ValidationResult(TokenState.INVALID, claims=claims)
            LOGGER.log(
                TRACE_LEVEL,
                "Token %s past not-before %s at %s",
                claims.id,
                claims.not_before,
                now,
            )

        LOGGER.log(TRACE_LEVEL, "Token %s is valid", claims.id)
        return ValidationResult(TokenState.VALID, claims=claims)

    def get_claims(self, token: str) -> ClaimSet:
        """Return the claim set of ``token`` without verifying its signature."""
        return ClaimSet.from_claims(parse_claims(token))

    def get_claim(self, token: str, name: str) -> Any:
        """Return a single claim of ``token``, or ``None`` when it is absent."""
        return self.get_claims(token).get(name)

    def _verify_signature(self, token: str) -> bool:
        try:
            self._jws.decode_complete(
                token,
                key=self.config.secret,
                algorithms=[self.config.algorithm.value],
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            LOGGER.debug("Signature check failed: %s", exc)
            return False
        return True

    @staticmethod
    def _within_expiration(claims: ClaimSet, now: datetime) -> bool:
        # A token without a numeric exp never passes the expiration check.
        if not isinstance(claims.expiration_time, datetime):
            return False
        return not now > claims.expiration_time


__all__ = [
    "TokenState",
    "TokenValidator",
    "ValidationResult",
    "parse_claims",
]
