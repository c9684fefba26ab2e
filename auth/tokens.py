"""
auth/tokens.py -- Token Issuer, Token Validator and Refresh Coordinator.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       id, role and exp. Both tokens of a pair are built from the same
       principal; they differ only in lifetime (15 min access, 12 h refresh).

  Validation is staged so every failure maps to exactly one error kind:
       1. parse header + claims        -> TokenMalformed
       2. header alg in HMAC family    -> TokenSignatureInvalid otherwise
       3. signature under SECRET_KEY   -> TokenSignatureInvalid
       4. exp present and numeric      -> TokenClaimMissing
          exp strictly in the future   -> TokenExpired
       5. id / role present and typed  -> TokenClaimMissing
       The alg check runs on the unverified header before any key is used.
       Tokens declaring "none", RS256, ES256, etc. never reach verification,
       which closes the classic algorithm-confusion hole.

  Expiry is checked here against an injectable clock rather than by
       jose's built-in exp check so the boundary is exact (exp <= now is
       expired) and deterministic in tests.

  Stateless refresh: refresh() does not invalidate the presented refresh
       token. There is no session table and no revocation list; a leaked
       refresh token stays usable until its own exp. Known limitation.

  SECRET_KEY is injected through the constructor (see from_settings()).
       Nothing in this module reads configuration at import time.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import JWSError, JWTError, jws, jwt

from auth.errors import SigningFailure, TokenClaimMissing, TokenExpired, TokenMalformed, TokenSignatureInvalid
from auth.models import TokenClaims, TokenPair

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("menuservice.auth")

# Algorithms accepted on incoming tokens. Issued tokens always use the
# configured algorithm (HS256 by default).
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

ACCESS_TOKEN_LIFETIME = timedelta(minutes=15)
REFRESH_TOKEN_LIFETIME = timedelta(hours=12)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues, validates and refreshes HMAC-signed bearer tokens.

    Usage:
        tokens = TokenService.from_settings(get_settings())
        pair = tokens.issue("cafe", 42)
        claims = tokens.validate(pair.access_token)
        new_pair = tokens.refresh(pair.refresh_token)

    Instances hold only immutable configuration and are safe to share across
    request workers.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_lifetime: timedelta = ACCESS_TOKEN_LIFETIME,
        refresh_lifetime: timedelta = REFRESH_TOKEN_LIFETIME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm {algorithm!r}; expected one of {HMAC_ALGORITHMS}.")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_lifetime = access_lifetime
        self._refresh_lifetime = refresh_lifetime
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], datetime] = _utcnow) -> "TokenService":
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.jwt_algorithm,
            access_lifetime=timedelta(seconds=settings.access_token_expire_seconds),
            refresh_lifetime=timedelta(seconds=settings.refresh_token_expire_seconds),
            clock=clock,
        )

    @property
    def access_lifetime(self) -> timedelta:
        return self._access_lifetime

    # ------------------------------------------------------------------
    # Issuer
    # ------------------------------------------------------------------

    def issue(self, role: str, identity: int) -> TokenPair:
        """Mint an access + refresh pair for (role, identity).

        Raises SigningFailure if the signing library rejects the key material.
        """
        now = self._clock()
        access = self._sign(TokenClaims(identity=identity, role=role, expiry=_numeric_date(now + self._access_lifetime)))
        refresh = self._sign(
            TokenClaims(identity=identity, role=role, expiry=_numeric_date(now + self._refresh_lifetime))
        )
        return TokenPair(access_token=access, refresh_token=refresh)

    def _sign(self, claims: TokenClaims) -> str:
        try:
            return jwt.encode(claims.to_payload(), self._secret_key, algorithm=self._algorithm)
        except (JWTError, JWSError) as exc:
            logger.error("Token signing failed: %s", exc)
            raise SigningFailure() from exc

    # ------------------------------------------------------------------
    # Validator
    # ------------------------------------------------------------------

    def validate(self, token: str) -> TokenClaims:
        """Verify a token and return its typed claims.

        Raises TokenMalformed, TokenSignatureInvalid, TokenClaimMissing or
        TokenExpired. Pure computation: no I/O, no state.
        """
        try:
            header = jwt.get_unverified_header(token)
            payload = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenMalformed() from exc

        alg = header.get("alg")
        if alg not in HMAC_ALGORITHMS:
            raise TokenSignatureInvalid(f"Unexpected signing method: {alg}.")

        try:
            jws.verify(token, self._secret_key, algorithms=list(HMAC_ALGORITHMS))
        except JWSError as exc:
            raise TokenSignatureInvalid() from exc

        self._check_expiry(payload)
        return TokenClaims.from_payload(payload)

    def _check_expiry(self, payload: dict[str, Any]) -> None:
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenClaimMissing("Invalid or missing expiration claim.")
        if exp <= self._clock().timestamp():
            raise TokenExpired()

    # ------------------------------------------------------------------
    # Refresh coordinator
    # ------------------------------------------------------------------

    def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a valid refresh token for a brand-new pair.

        Validation errors propagate unchanged and no tokens are issued. The
        presented token is not revoked (see module docstring).
        """
        claims = self.validate(refresh_token)
        return self.issue(claims.role, claims.identity)


def _numeric_date(moment: datetime) -> int:
    return int(moment.timestamp())
