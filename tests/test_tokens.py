"""Unit tests for auth/tokens.py -- issue, validate and refresh.

Covers:
- issue() round-trips through validate() with the original id and role
- access/refresh lifetimes (15 min / 12 h) and the shared id/role invariant
- expiry boundary: exp one second behind now fails, one second ahead passes
- algorithm confusion: RS256 / none headers are rejected before verification
- malformed input, wrong secret, missing or mistyped claims
- refresh() issues a later pair and surfaces validation errors unchanged
- signing library failures become SigningFailure
"""

import base64
import hashlib
import hmac
import json

import pytest
from jose import JWTError, jwt

from auth import tokens as tokens_module
from auth.errors import (
    SigningFailure,
    TokenClaimMissing,
    TokenExpired,
    TokenMalformed,
    TokenSignatureInvalid,
    Unauthorized,
)
from auth.tokens import TokenService
from conftest import TEST_SECRET

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _forge(header: dict, claims: dict, key: str = TEST_SECRET) -> str:
    """Build a compact token by hand, HMAC-SHA256 signed whatever the header says."""
    signing_input = f"{_b64(json.dumps(header).encode())}.{_b64(json.dumps(claims).encode())}"
    signature = hmac.new(key.encode(), signing_input.encode(), hashlib.sha256).digest()
    return f"{signing_input}.{_b64(signature)}"


def _sign(claims: dict, key: str = TEST_SECRET, algorithm: str = "HS256") -> str:
    return jwt.encode(claims, key, algorithm=algorithm)


# ---------------------------------------------------------------------------
# Issue / validate
# ---------------------------------------------------------------------------


class TestIssue:
    def test_access_token_round_trip(self, tokens, clock):
        pair = tokens.issue("cafe", 42)
        claims = tokens.validate(pair.access_token)
        assert claims.identity == 42
        assert claims.role == "cafe"
        assert claims.expiry == int(clock.now.timestamp()) + 15 * 60

    def test_refresh_token_lifetime_is_twelve_hours(self, tokens, clock):
        pair = tokens.issue("cafe", 42)
        claims = tokens.validate(pair.refresh_token)
        assert claims.expiry == int(clock.now.timestamp()) + 12 * 60 * 60

    def test_pair_shares_identity_and_role(self, tokens):
        pair = tokens.issue("admin", 7)
        access = tokens.validate(pair.access_token)
        refresh = tokens.validate(pair.refresh_token)
        assert (access.identity, access.role) == (refresh.identity, refresh.role)
        assert access.expiry < refresh.expiry

    def test_wire_claims_use_id_role_exp(self, tokens):
        pair = tokens.issue("cafe", 5)
        payload = jwt.get_unverified_claims(pair.access_token)
        assert set(payload) == {"id", "role", "exp"}
        assert jwt.get_unverified_header(pair.access_token)["alg"] == "HS256"

    def test_access_token_unusable_after_fifteen_minutes(self, tokens, clock):
        pair = tokens.issue("cafe", 42)
        clock.advance(15 * 60)
        with pytest.raises(TokenExpired):
            tokens.validate(pair.access_token)
        # refresh token still good
        assert tokens.validate(pair.refresh_token).identity == 42

    def test_signing_failure(self, tokens, monkeypatch):
        def broken_encode(*args, **kwargs):
            raise JWTError("bad key")

        monkeypatch.setattr(tokens_module.jwt, "encode", broken_encode)
        with pytest.raises(SigningFailure) as exc_info:
            tokens.issue("cafe", 1)
        assert exc_info.value.status_code == 500

    def test_rejects_non_hmac_signing_algorithm(self):
        with pytest.raises(ValueError):
            TokenService(secret_key=TEST_SECRET, algorithm="RS256")


# ---------------------------------------------------------------------------
# Expiry boundary
# ---------------------------------------------------------------------------


class TestExpiry:
    def test_exp_one_second_ago_is_expired(self, tokens, clock):
        now = int(clock.now.timestamp())
        with pytest.raises(TokenExpired):
            tokens.validate(_sign({"id": 1, "role": "cafe", "exp": now - 1}))

    def test_exp_equal_to_now_is_expired(self, tokens, clock):
        now = int(clock.now.timestamp())
        with pytest.raises(TokenExpired):
            tokens.validate(_sign({"id": 1, "role": "cafe", "exp": now}))

    def test_exp_one_second_ahead_is_valid(self, tokens, clock):
        now = int(clock.now.timestamp())
        claims = tokens.validate(_sign({"id": 1, "role": "cafe", "exp": now + 1}))
        assert claims.identity == 1

    def test_missing_exp(self, tokens):
        with pytest.raises(TokenClaimMissing):
            tokens.validate(_sign({"id": 1, "role": "cafe"}))

    def test_non_numeric_exp(self, tokens):
        with pytest.raises(TokenClaimMissing):
            tokens.validate(_sign({"id": 1, "role": "cafe", "exp": "tomorrow"}))

    def test_boolean_exp_is_not_a_number(self, tokens):
        with pytest.raises(TokenClaimMissing):
            tokens.validate(_sign({"id": 1, "role": "cafe", "exp": True}))


# ---------------------------------------------------------------------------
# Signature, algorithm and structure
# ---------------------------------------------------------------------------


class TestSignature:
    def test_wrong_secret(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        forged = _sign({"id": 1, "role": "cafe", "exp": exp}, key="another-secret-key-that-is-32-chars-long")
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate(forged)

    def test_rs256_header_with_hmac_signature_is_rejected(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        forged = _forge({"alg": "RS256", "typ": "JWT"}, {"id": 1, "role": "cafe", "exp": exp})
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate(forged)

    def test_alg_none_is_rejected(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        header = _b64(json.dumps({"alg": "none", "typ": "JWT"}).encode())
        body = _b64(json.dumps({"id": 1, "role": "cafe", "exp": exp}).encode())
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate(f"{header}.{body}.")

    def test_other_hmac_variant_is_accepted(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        claims = tokens.validate(_sign({"id": 3, "role": "cafe", "exp": exp}, algorithm="HS512"))
        assert claims.identity == 3

    def test_tampered_claims(self, tokens):
        pair = tokens.issue("customer", 9)
        header, _, signature = pair.access_token.split(".")
        payload = jwt.get_unverified_claims(pair.access_token)
        payload["role"] = "cafe"
        tampered = f"{header}.{_b64(json.dumps(payload).encode())}.{signature}"
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate(tampered)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b", "a.b.c", "!!!.???.***"])
    def test_malformed(self, tokens, garbage):
        with pytest.raises(TokenMalformed):
            tokens.validate(garbage)

    def test_claims_not_an_object(self, tokens):
        header = _b64(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
        body = _b64(b"[1, 2, 3]")
        with pytest.raises(TokenMalformed):
            tokens.validate(f"{header}.{body}.c2ln")

    def test_all_token_errors_are_unauthorized(self, tokens):
        with pytest.raises(Unauthorized):
            tokens.validate("not-a-token")


class TestClaims:
    def test_missing_id(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        with pytest.raises(TokenClaimMissing):
            tokens.validate(_sign({"role": "cafe", "exp": exp}))

    def test_string_id(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        with pytest.raises(TokenClaimMissing):
            tokens.validate(_sign({"id": "42", "role": "cafe", "exp": exp}))

    def test_missing_role(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        with pytest.raises(TokenClaimMissing):
            tokens.validate(_sign({"id": 42, "exp": exp}))

    def test_integral_float_id_is_accepted(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        claims = tokens.validate(_sign({"id": 42.0, "role": "cafe", "exp": exp}))
        assert claims.identity == 42
        assert isinstance(claims.identity, int)

    def test_expired_wins_over_missing_id(self, tokens, clock):
        exp = int(clock.now.timestamp()) - 5
        with pytest.raises(TokenExpired):
            tokens.validate(_sign({"role": "cafe", "exp": exp}))


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    def test_refresh_issues_later_pair(self, tokens, clock):
        original = tokens.issue("cafe", 42)
        original_access = tokens.validate(original.access_token)

        clock.advance(1)
        renewed = tokens.refresh(original.refresh_token)
        access = tokens.validate(renewed.access_token)
        refresh = tokens.validate(renewed.refresh_token)

        assert access.expiry > original_access.expiry
        assert (access.identity, access.role) == (42, "cafe")
        assert (refresh.identity, refresh.role) == (42, "cafe")

    def test_old_refresh_token_remains_valid(self, tokens, clock):
        original = tokens.issue("cafe", 42)
        clock.advance(60)
        tokens.refresh(original.refresh_token)
        # stateless: no revocation of the presented token
        assert tokens.validate(original.refresh_token).identity == 42

    def test_expired_refresh_token(self, tokens, clock):
        original = tokens.issue("cafe", 42)
        clock.advance(12 * 60 * 60)
        with pytest.raises(TokenExpired):
            tokens.refresh(original.refresh_token)

    def test_refresh_with_bad_signature(self, tokens, clock):
        exp = int(clock.now.timestamp()) + 60
        forged = _sign({"id": 1, "role": "cafe", "exp": exp}, key="another-secret-key-that-is-32-chars-long")
        with pytest.raises(TokenSignatureInvalid):
            tokens.refresh(forged)

    def test_refresh_does_not_issue_on_failure(self, tokens, monkeypatch):
        issued = []
        monkeypatch.setattr(tokens, "issue", lambda role, identity: issued.append((role, identity)))
        with pytest.raises(TokenMalformed):
            tokens.refresh("garbage")
        assert issued == []
