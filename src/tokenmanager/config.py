"""Signing configuration and application settings via Pydantic Settings."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Final

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenmanager.duration import TimeDuration, TimeUnit
from tokenmanager.errors import (
    ConfigurationError,
    InvalidAlgorithm,
    InvalidSecret,
    InvalidSecretLength,
    MissingConfigurationKey,
)


class Algorithm(str, Enum):
    """HMAC algorithms supported for signing."""

    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"

    @property
    def min_secret_bytes(self) -> int:
        """Minimum shared secret length in bytes for this algorithm."""
        return _MIN_SECRET_BYTES[self]


_MIN_SECRET_BYTES: Final[dict[Algorithm, int]] = {
    Algorithm.HS256: 32,
    Algorithm.HS384: 48,
    Algorithm.HS512: 64,
}


def _resolve_algorithm(value: Algorithm | str) -> Algorithm:
    if isinstance(value, Algorithm):
        return value
    try:
        return Algorithm(value)
    except ValueError as exc:
        raise InvalidAlgorithm(
            f"Invalid algorithm for HMAC generator: {value!r}"
        ) from exc


def _normalise_audience(value: str | Sequence[str] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class SigningConfig:
    """Validated configuration shared by token issuance and validation.

    The secret is kept as bytes; a ``str`` secret is UTF-8 encoded. Instances
    are immutable and safe to share between threads.
    """

    algorithm: Algorithm
    secret: bytes = field(repr=False)
    default_expiration: TimeDuration
    default_issuer: str | None = None
    default_subject: str | None = None
    default_audience: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        algorithm = _resolve_algorithm(self.algorithm)
        object.__setattr__(self, "algorithm", algorithm)

        secret = self.secret
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        elif not isinstance(secret, (bytes, bytearray)):
            raise InvalidSecret(
                f"Secret must be a string or bytes, got {type(secret).__name__}"
            )
        object.__setattr__(self, "secret", bytes(secret))

        if len(self.secret) < algorithm.min_secret_bytes:
            raise InvalidSecretLength(
                f"Invalid secret length for {algorithm.value} algorithm: "
                f"need at least {algorithm.min_secret_bytes} bytes, got {len(self.secret)}"
            )

        object.__setattr__(
            self, "default_expiration", TimeDuration.parse(self.default_expiration)
        )
        object.__setattr__(
            self, "default_audience", _normalise_audience(self.default_audience)
        )

    @classmethod
    def validate(
        cls,
        algorithm: Algorithm | str,
        secret: str | bytes,
        default_expiration: TimeDuration | Mapping[str, Any] | str,
        *,
        default_issuer: str | None = None,
        default_subject: str | None = None,
        default_audience: str | Sequence[str] | None = None,
    ) -> "SigningConfig":
        """Validate the inputs and return an immutable configuration."""
        return cls(
            algorithm=algorithm,
            secret=secret,
            default_expiration=default_expiration,
            default_issuer=default_issuer,
            default_subject=default_subject,
            default_audience=default_audience,
        )

    @classmethod
    def from_mapping(cls, tree: Mapping[str, Any]) -> "SigningConfig":
        """Build a configuration from a tree such as a parsed config file.

        Expected keys are ``algorithm``, ``secret``,
        ``default-expiration-time.unit``, ``default-expiration-time.length``
        and optionally ``data.issuer``, ``data.subject`` and ``data.audience``.
        """
        expiration = _require(tree, "default-expiration-time")
        if not isinstance(expiration, Mapping):
            raise MissingConfigurationKey(
                "default-expiration-time must contain 'unit' and 'length'"
            )
        data = tree.get("data") or {}
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"data must be a mapping, got {type(data).__name__}"
            )
        return cls.validate(
            algorithm=_require(tree, "algorithm"),
            secret=_scalar_as_text(_require(tree, "secret")),
            default_expiration=TimeDuration(
                unit=_require(expiration, "unit", prefix="default-expiration-time."),
                length=_require(expiration, "length", prefix="default-expiration-time."),
            ),
            default_issuer=data.get("issuer"),
            default_subject=data.get("subject"),
            default_audience=data.get("audience"),
        )


def _require(tree: Mapping[str, Any], key: str, *, prefix: str = "") -> Any:
    if key not in tree or tree[key] is None:
        raise MissingConfigurationKey(f"Missing configuration key: {prefix}{key}")
    return tree[key]


def _scalar_as_text(value: Any) -> Any:
    # Numeric scalars are read as their text form.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _empty_str_to_none(v: str | None) -> str | None:
    """Convert empty strings to None so Pydantic uses field defaults."""
    if v == "":
        return None
    return v


class HmacSettings(BaseSettings):
    """HMAC signing settings read from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENMANAGER_HMAC_",
        env_file=".env",
        extra="ignore",
    )

    algorithm: str = Algorithm.HS512.value
    secret: str | None = None
    default_expiration_unit: str = TimeUnit.HOURS.value
    default_expiration_length: int = 1
    issuer: str | None = None
    subject: str | None = None
    audience: str | None = None

    @field_validator("secret", "issuer", "subject", "audience", mode="before")
    @classmethod
    def handle_empty_str(cls, v: str | None) -> str | None:
        return _empty_str_to_none(v)

    @property
    def audience_list(self) -> list[str] | None:
        """Return the comma separated audience as a list."""
        if not self.audience:
            return None
        entries = [a.strip() for a in self.audience.split(",") if a.strip()]
        return entries or None

    def to_signing_config(self) -> SigningConfig:
        """Return a validated :class:`SigningConfig` for these settings."""
        return SigningConfig.validate(
            algorithm=self.algorithm,
            secret=self.secret or "",
            default_expiration=TimeDuration(
                unit=self.default_expiration_unit,
                length=self.default_expiration_length,
            ),
            default_issuer=self.issuer,
            default_subject=self.subject,
            default_audience=self.audience_list,
        )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENMANAGER_",
        env_file=".env",
        extra="ignore",
    )

    log_level: str = "INFO"


class Settings(BaseSettings):
    """Aggregate configuration for the token manager."""

    model_config = SettingsConfigDict(extra="ignore")

    hmac: HmacSettings = Field(default_factory=HmacSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Force settings cache to reload from environment."""
    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "Algorithm",
    "HmacSettings",
    "LoggingSettings",
    "Settings",
    "SigningConfig",
    "get_settings",
    "reload_settings",
]
