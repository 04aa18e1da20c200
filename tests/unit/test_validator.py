"""Tests for token validation."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

import jwt
import pytest
from jwt.utils import base64url_decode, base64url_encode

from tokenmanager.config import SigningConfig
from tokenmanager.duration import TimeDuration
from tokenmanager.errors import ErrorKind, MalformedToken, MissingNotBeforeClaim
from tokenmanager.issuer import TokenIssuer
from tokenmanager.validator import TokenState, TokenValidator, ValidationResult

SECRETS = {
    "HS256": "s" * 32,
    "HS384": "s" * 48,
    "HS512": "s" * 64,
}


def _tamper_signature(token: str) -> str:
    header, payload, signature = token.split(".")
    first = "B" if signature[0] != "B" else "C"
    return ".".join([header, payload, first + signature[1:]])


def _tamper_payload(token: str, **changes: object) -> str:
    header, payload, signature = token.split(".")
    claims = json.loads(base64url_decode(payload))
    claims.update(changes)
    forged = base64url_encode(json.dumps(claims).encode()).decode()
    return ".".join([header, forged, signature])


@pytest.fixture
def issuer(config: SigningConfig, clock) -> TokenIssuer:
    return TokenIssuer(config, clock=clock)


@pytest.fixture
def validator(config: SigningConfig, clock) -> TokenValidator:
    return TokenValidator(config, clock=clock)


class TestValidate:
    """Tests for the validation state machine."""

    @pytest.mark.parametrize("algorithm", sorted(SECRETS))
    def test_round_trip_signature_only(self, algorithm: str, clock) -> None:
        """Issued tokens always pass signature-only validation."""
        config = SigningConfig.validate(algorithm, SECRETS[algorithm], TimeDuration("s", 1))
        token = TokenIssuer(config, clock=clock).generate({"id": 1, "tags": ["a"]})
        clock.advance(days=30)
        validator = TokenValidator(config, clock=clock)
        assert validator.validate(token, check_expiration=False, check_not_before=False) is True

    def test_valid_before_expiration(self, issuer, validator, clock) -> None:
        """A fresh token is valid when expiration is checked."""
        token = issuer.generate({}, expiration_time=TimeDuration("s", 10))
        assert validator.validate(token) is True
        clock.advance(seconds=10)
        assert validator.validate(token) is True

    def test_invalid_after_expiration(self, issuer, validator, clock) -> None:
        """A token is invalid once its lifetime has elapsed."""
        token = issuer.generate({}, expiration_time=TimeDuration("s", 10))
        clock.advance(seconds=11)
        assert validator.validate(token) is False
        assert validator.validate(token, check_expiration=False) is True

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "not a token"])
    def test_malformed(self, validator, token: str) -> None:
        """Tokens that cannot be parsed raise MalformedToken."""
        with pytest.raises(MalformedToken):
            validator.validate(token)

    def test_malformed_non_string(self, validator) -> None:
        """Non string tokens raise MalformedToken."""
        with pytest.raises(MalformedToken):
            validator.validate(None)  # type: ignore[arg-type]

    def test_missing_not_before(self, issuer, validator) -> None:
        """Requesting not-before checks on a token without nbf is an error."""
        token = issuer.generate({})
        with pytest.raises(MissingNotBeforeClaim):
            validator.validate(token, check_not_before=True)
        with pytest.raises(MissingNotBeforeClaim):
            validator.validate(token, check_expiration=False, check_not_before=True)

    def test_not_before_now(self, issuer, validator, clock) -> None:
        """A token usable from now passes not-before validation."""
        token = issuer.generate({}, not_before=clock())
        assert validator.validate(token, check_not_before=True) is True

    def test_not_before_in_future(self, issuer, validator, clock) -> None:
        """A token is invalid before its not-before time."""
        token = issuer.generate({}, not_before=clock() + timedelta(minutes=5))
        assert validator.validate(token, check_not_before=True) is False
        assert validator.validate(token, check_expiration=True) is True
        clock.advance(minutes=5)
        assert validator.validate(token, check_not_before=True) is True

    def test_missing_expiration(self, config: SigningConfig, validator) -> None:
        """A signed token without exp fails the expiration check only."""
        token = jwt.encode({"jti": "no-exp"}, config.secret, algorithm="HS256")
        assert validator.validate(token, check_expiration=True) is False
        assert validator.validate(token, check_expiration=False) is True
        result = validator.evaluate(token)
        assert result.state is TokenState.INVALID
        assert result.claims is not None
        assert result.claims.expiration_time is None

    def test_expired_short_circuits_not_before(self, issuer, validator, clock) -> None:
        """An expired token is invalid even when nbf is missing."""
        token = issuer.generate({}, expiration_time=TimeDuration("s", 1))
        clock.advance(seconds=5)
        assert validator.validate(token, check_not_before=True) is False

    def test_tampered_signature(self, issuer, validator) -> None:
        """A modified signature fails even signature-only validation."""
        token = _tamper_signature(issuer.generate({}, not_before=datetime(2000, 1, 1)))
        assert validator.validate(token, check_expiration=False) is False
        assert validator.validate(token, check_expiration=True, check_not_before=True) is False

    def test_tampered_signature_skips_temporal_checks(self, issuer, validator) -> None:
        """A forged token without nbf is invalid rather than an error."""
        token = _tamper_signature(issuer.generate({}))
        assert validator.validate(token, check_not_before=True) is False

    def test_tampered_payload(self, issuer, validator) -> None:
        """Edited claims under the original signature are rejected."""
        token = issuer.generate({"admin": False})
        forged = _tamper_payload(token, admin=True)
        assert validator.get_claim(forged, "admin") is True
        assert validator.validate(forged, check_expiration=False) is False

    def test_signed_with_other_secret(self, validator, clock) -> None:
        """Claims signed under another secret are rejected."""
        other = SigningConfig.validate("HS256", "x" * 32, TimeDuration("h", 1))
        forged = TokenIssuer(other, clock=clock).generate({"admin": True})
        assert validator.validate(forged, check_expiration=False) is False

    def test_algorithm_mismatch(self, clock) -> None:
        """Tokens signed with another HMAC algorithm are invalid."""
        secret = SECRETS["HS512"]
        hs256 = SigningConfig.validate("HS256", secret, TimeDuration("h", 1))
        hs512 = SigningConfig.validate("HS512", secret, TimeDuration("h", 1))
        token = TokenIssuer(hs256, clock=clock).generate({})
        assert TokenValidator(hs512, clock=clock).validate(token) is False


class TestEvaluate:
    """Tests for the tagged validation result."""

    def test_valid(self, issuer, validator) -> None:
        """Valid tokens carry their claims."""
        result = validator.evaluate(issuer.generate({"role": "admin"}, id="t1"))
        assert result.state is TokenState.VALID
        assert result
        assert result.claims is not None
        assert result.claims.id == "t1"
        assert result.error is None

    def test_invalid_signature(self, issuer, validator) -> None:
        """Forged tokens are invalid without claims."""
        result = validator.evaluate(_tamper_signature(issuer.generate({})))
        assert result.state is TokenState.INVALID
        assert not result
        assert result.claims is None
        assert result.unwrap() is False

    def test_malformed(self, validator) -> None:
        """Parse failures are reported in the error state."""
        result = validator.evaluate("garbage")
        assert result.state is TokenState.ERROR
        assert result.error is not None
        assert result.error.kind is ErrorKind.MALFORMED_TOKEN
        with pytest.raises(MalformedToken):
            result.unwrap()

    def test_missing_not_before(self, issuer, validator) -> None:
        """Missing nbf is an error, not an invalid token."""
        result = validator.evaluate(issuer.generate({}), check_not_before=True)
        assert result.state is TokenState.ERROR
        assert result.error.kind is ErrorKind.MISSING_NOT_BEFORE_CLAIM

    def test_unwrap_valid(self) -> None:
        """Unwrapping a valid result returns True."""
        assert ValidationResult(TokenState.VALID).unwrap() is True

    def test_error_state_requires_error(self) -> None:
        """An error result cannot be built without its error."""
        with pytest.raises(ValueError):
            ValidationResult(TokenState.ERROR)

    @pytest.mark.parametrize("state", [TokenState.VALID, TokenState.INVALID])
    def test_error_only_in_error_state(self, state: TokenState) -> None:
        """Only error results may carry an error."""
        with pytest.raises(ValueError):
            ValidationResult(state, error=MalformedToken("bad"))


class TestClaims:
    """Tests for reading claims without verification."""

    def test_get_claim(self, issuer, validator) -> None:
        """Custom payload entries are recovered."""
        token = issuer.generate({"id": 1, "gender": "Male"})
        assert validator.get_claim(token, "id") == 1
        assert validator.get_claim(token, "gender") == "Male"
        assert validator.get_claim(token, "missing") is None

    def test_get_claims(self, issuer, validator, clock) -> None:
        """Registered and custom claims are recovered."""
        nbf = clock() + timedelta(minutes=1)
        token = issuer.generate(
            {"id": 1},
            id="t1",
            issuer="auth",
            subject="user",
            audience=["web", "cli"],
            not_before=nbf,
            expiration_time=TimeDuration("h", 2),
        )
        claims = validator.get_claims(token)
        assert claims.id == "t1"
        assert claims.issuer == "auth"
        assert claims.subject == "user"
        assert claims.audience == ("web", "cli")
        assert claims.issued_at == clock()
        assert claims.not_before == nbf
        assert claims.expiration_time == nbf + timedelta(hours=2)
        assert claims.custom == {"id": 1}

    def test_get_claims_does_not_verify(self, issuer, validator) -> None:
        """Claims are readable from tokens with a bad signature."""
        token = _tamper_signature(issuer.generate({"id": 7}))
        assert validator.get_claim(token, "id") == 7

    def test_get_claims_malformed(self, validator) -> None:
        """Parse failures propagate as MalformedToken."""
        with pytest.raises(MalformedToken):
            validator.get_claims("a.b")
        with pytest.raises(MalformedToken):
            validator.get_claim("", "id")
