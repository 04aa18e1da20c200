"""Bearer token dependencies for FastAPI."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from tokenmanager.claims import ClaimSet
from tokenmanager.manager import TokenManager


@lru_cache(maxsize=1)
def _get_token_manager() -> TokenManager:
    """Create and cache the token manager instance."""
    return TokenManager.from_settings()


def get_token_manager() -> TokenManager:
    """Dependency that provides the token manager instance."""
    return _get_token_manager()


TokenManagerDep = Annotated[TokenManager, Depends(get_token_manager)]


async def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the bearer token from the Authorization header."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


async def get_optional_claims(
    token: Annotated[str | None, Depends(get_bearer_token)],
    manager: TokenManagerDep,
) -> ClaimSet | None:
    """Return the claims of a valid, unexpired bearer token, otherwise None."""
    if not token:
        return None

    result = manager.evaluate(token, check_expiration=True)
    if not result.is_valid:
        return None
    return result.claims


async def get_current_claims(
    claims: Annotated[ClaimSet | None, Depends(get_optional_claims)],
) -> ClaimSet:
    """Return the bearer token claims or raise 401."""
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


# Type aliases for dependency injection
OptionalClaimsDep = Annotated[ClaimSet | None, Depends(get_optional_claims)]
CurrentClaimsDep = Annotated[ClaimSet, Depends(get_current_claims)]


__all__ = [
    "CurrentClaimsDep",
    "OptionalClaimsDep",
    "TokenManagerDep",
    "get_bearer_token",
    "get_current_claims",
    "get_optional_claims",
    "get_token_manager",
]
