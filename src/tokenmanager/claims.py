"""Claim sets carried by tokens and their assembly from layered defaults."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Final

from tokenmanager.config import SigningConfig
from tokenmanager.duration import TimeDuration, coerce_datetime

LOGGER = logging.getLogger(__name__)

JTI: Final = "jti"
ISS: Final = "iss"
SUB: Final = "sub"
AUD: Final = "aud"
IAT: Final = "iat"
EXP: Final = "exp"
NBF: Final = "nbf"

REGISTERED_CLAIMS: Final = frozenset({JTI, ISS, SUB, AUD, IAT, EXP, NBF})


def _to_numeric_date(value: datetime) -> int:
    return int(value.timestamp())


def _from_numeric_date(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return value


@dataclass(frozen=True)
class ClaimSet:
    """Registered and custom claims of a single token."""

    id: str | None = None
    issuer: str | None = None
    subject: str | None = None
    audience: tuple[str, ...] | None = None
    issued_at: datetime | None = None
    expiration_time: datetime | None = None
    not_before: datetime | None = None
    custom: dict[str, Any] = field(default_factory=dict)

    def to_claims(self) -> dict[str, Any]:
        """Return the JWT claims mapping, registered claims taking precedence."""
        claims: dict[str, Any] = dict(self.custom)
        if self.id is not None:
            claims[JTI] = self.id
        if self.issuer is not None:
            claims[ISS] = self.issuer
        if self.subject is not None:
            claims[SUB] = self.subject
        if self.audience is not None:
            claims[AUD] = list(self.audience)
        if self.issued_at is not None:
            claims[IAT] = _to_numeric_date(self.issued_at)
        if self.expiration_time is not None:
            claims[EXP] = _to_numeric_date(self.expiration_time)
        if self.not_before is not None:
            claims[NBF] = _to_numeric_date(self.not_before)
        return claims

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "ClaimSet":
        """Build a claim set from a decoded claims mapping."""
        audience = claims.get(AUD)
        if isinstance(audience, str):
            audience = (audience,)
        elif isinstance(audience, Sequence):
            audience = tuple(audience)
        return cls(
            id=claims.get(JTI),
            issuer=claims.get(ISS),
            subject=claims.get(SUB),
            audience=audience,
            issued_at=_from_numeric_date(claims.get(IAT)),
            expiration_time=_from_numeric_date(claims.get(EXP)),
            not_before=_from_numeric_date(claims.get(NBF)),
            custom={k: v for k, v in claims.items() if k not in REGISTERED_CLAIMS},
        )

    def get(self, name: str) -> Any:
        """Return a claim by its wire name, or ``None`` when absent."""
        registered = {
            JTI: self.id,
            ISS: self.issuer,
            SUB: self.subject,
            AUD: list(self.audience) if self.audience is not None else None,
            IAT: self.issued_at,
            EXP: self.expiration_time,
            NBF: self.not_before,
        }
        if name in registered:
            return registered[name]
        return self.custom.get(name)


class ClaimSetBuilder:
    """Assemble claim sets for new tokens.

    Explicit arguments win over configured defaults; values with neither are
    left out of the claim set.
    """

    def __init__(self, config: SigningConfig) -> None:
        self.config = config

    def build(
        self,
        payload: Mapping[str, Any],
        *,
        now: datetime,
        id: str | None = None,
        issuer: str | None = None,
        subject: str | None = None,
        audience: str | Sequence[str] | None = None,
        expiration_time: TimeDuration | Mapping[str, Any] | str | None = None,
        not_before: datetime | int | str | None = None,
    ) -> ClaimSet:
        nbf = coerce_datetime(not_before) if not_before is not None else None
        duration = (
            TimeDuration.parse(expiration_time)
            if expiration_time is not None
            else self.config.default_expiration
        )
        base = nbf if nbf is not None else now

        if audience is None:
            resolved_audience = self.config.default_audience
        elif isinstance(audience, str):
            resolved_audience = (audience,)
        else:
            resolved_audience = tuple(audience)

        claim_set = ClaimSet(
            id=id if id is not None else str(uuid.uuid4()),
            issuer=issuer if issuer is not None else self.config.default_issuer,
            subject=subject if subject is not None else self.config.default_subject,
            audience=resolved_audience,
            issued_at=now,
            expiration_time=duration.add_to(base),
            not_before=nbf,
            custom=dict(payload),
        )
        LOGGER.debug(
            "Built claim set %s expiring in %s from %s",
            claim_set.id,
            duration,
            "not-before" if nbf is not None else "issue time",
        )
        return claim_set


__all__ = [
    "AUD",
    "ClaimSet",
    "ClaimSetBuilder",
    "EXP",
    "IAT",
    "ISS",
    "JTI",
    "NBF",
    "REGISTERED_CLAIMS",
    "SUB",
]
