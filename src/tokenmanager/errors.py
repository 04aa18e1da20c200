"""Error taxonomy for token issuance and validation."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Names every failure the token engine can report."""

    INVALID_ALGORITHM = "invalid_algorithm"
    INVALID_SECRET = "invalid_secret"
    INVALID_SECRET_LENGTH = "invalid_secret_length"
    INVALID_UNIT = "invalid_unit"
    INVALID_DURATION_LENGTH = "invalid_duration_length"
    INVALID_DATETIME = "invalid_datetime"
    MISSING_CONFIGURATION_KEY = "missing_configuration_key"
    MALFORMED_TOKEN = "malformed_token"
    MISSING_NOT_BEFORE_CLAIM = "missing_not_before_claim"
    SIGNING_ERROR = "signing_error"


class TokenError(Exception):
    """Base class for all token engine errors."""

    kind: ErrorKind


class ConfigurationError(TokenError):
    """Raised when signing configuration is invalid."""


class InvalidAlgorithm(ConfigurationError):
    """Raised when the algorithm is not one of HS256, HS384 or HS512."""

    kind = ErrorKind.INVALID_ALGORITHM


class InvalidSecret(ConfigurationError):
    """Raised when the shared secret is neither text nor bytes."""

    kind = ErrorKind.INVALID_SECRET


class InvalidSecretLength(ConfigurationError):
    """Raised when the shared secret is too short for the algorithm."""

    kind = ErrorKind.INVALID_SECRET_LENGTH


class InvalidUnit(ConfigurationError):
    """Raised when a time duration unit is not recognised."""

    kind = ErrorKind.INVALID_UNIT


class InvalidDurationLength(ConfigurationError):
    """Raised when a time duration length is negative or not an integer."""

    kind = ErrorKind.INVALID_DURATION_LENGTH


class InvalidDateTime(ConfigurationError):
    """Raised when a value cannot be read as a point in time."""

    kind = ErrorKind.INVALID_DATETIME


class MissingConfigurationKey(ConfigurationError):
    """Raised when a required key is absent from a configuration tree."""

    kind = ErrorKind.MISSING_CONFIGURATION_KEY


class MalformedToken(TokenError):
    """Raised when a token cannot be parsed as a compact JWS."""

    kind = ErrorKind.MALFORMED_TOKEN


class MissingNotBeforeClaim(TokenError):
    """Raised when not-before validation is requested for a token without ``nbf``."""

    kind = ErrorKind.MISSING_NOT_BEFORE_CLAIM


class SigningError(TokenError):
    """Raised when the token could not be signed."""

    kind = ErrorKind.SIGNING_ERROR


__all__ = [
    "ConfigurationError",
    "ErrorKind",
    "InvalidAlgorithm",
    "InvalidDateTime",
    "InvalidDurationLength",
    "InvalidSecret",
    "InvalidSecretLength",
    "InvalidUnit",
    "MalformedToken",
    "MissingConfigurationKey",
    "MissingNotBeforeClaim",
    "SigningError",
    "TokenError",
]
