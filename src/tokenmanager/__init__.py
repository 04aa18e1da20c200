"""Issue and validate HMAC-signed JSON Web Tokens."""

from tokenmanager.claims import ClaimSet, ClaimSetBuilder
from tokenmanager.config import Algorithm, SigningConfig
from tokenmanager.duration import TimeDuration, TimeUnit
from tokenmanager.errors import (
    ConfigurationError,
    ErrorKind,
    InvalidAlgorithm,
    InvalidDateTime,
    InvalidDurationLength,
    InvalidSecret,
    InvalidSecretLength,
    InvalidUnit,
    MalformedToken,
    MissingConfigurationKey,
    MissingNotBeforeClaim,
    SigningError,
    TokenError,
)
from tokenmanager.issuer import TokenIssuer
from tokenmanager.manager import AsyncTokenManager, TokenManager
from tokenmanager.validator import TokenState, TokenValidator, ValidationResult

__version__ = "0.1.0"

__all__ = [
    "Algorithm",
    "AsyncTokenManager",
    "ClaimSet",
    "ClaimSetBuilder",
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
    "SigningConfig",
    "SigningError",
    "TimeDuration",
    "TimeUnit",
    "TokenError",
    "TokenIssuer",
    "TokenManager",
    "TokenState",
    "TokenValidator",
    "ValidationResult",
]
