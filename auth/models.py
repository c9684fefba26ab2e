"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores and routes
do the work; the one exception is TokenClaims.from_payload(), which is the
single decode step from an untyped JWT payload into a typed value.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from auth.errors import TokenClaimMissing

ROLE_CAFE = "cafe"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """The authenticated entity: numeric identity plus role label."""

    identity: int
    role: str


@dataclass(frozen=True)
class TokenClaims:
    """Typed view of a verified token payload.

    Wire names: identity <-> "id", role <-> "role", expiry <-> "exp"
    (NumericDate, seconds since the epoch).
    """

    identity: int
    role: str
    expiry: float

    @property
    def principal(self) -> Principal:
        return Principal(identity=self.identity, role=self.role)

    def to_payload(self) -> dict[str, Any]:
        return {"role": self.role, "id": self.identity, "exp": self.expiry}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TokenClaims":
        """Decode a raw claims mapping. Raises TokenClaimMissing on absent or mistyped claims.

        bool is rejected explicitly for numeric claims because it is an int
        subclass in Python and True would otherwise decode as identity 1.
        """
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenClaimMissing("Invalid or missing expiration claim.")

        identity = payload.get("id")
        if isinstance(identity, float) and identity.is_integer():
            identity = int(identity)
        if isinstance(identity, bool) or not isinstance(identity, int):
            raise TokenClaimMissing("Invalid or missing id claim.")

        role = payload.get("role")
        if not isinstance(role, str) or not role:
            raise TokenClaimMissing("Invalid or missing role claim.")

        return cls(identity=identity, role=role, expiry=exp)


@dataclass(frozen=True)
class TokenPair:
    """Access + refresh token minted together for one principal."""

    access_token: str
    refresh_token: str


@dataclass
class Cafe:
    """A café account -- the principal that owns a menu.

    login is the credential key used at /cafe/auth/login. hashed_password is a
    bcrypt hash and never leaves the store layer in API responses.
    """

    login: str
    name: str
    id: int | None = None
    hashed_password: str | None = None
    role: str = ROLE_CAFE
    logo: str = ""
    code: str = ""
    expiry_date: str | None = None  # ISO 8601 subscription end
    phone_numbers: list[str] = field(default_factory=list)
    created_at: str | None = None


@dataclass
class Admin:
    """A platform administrator. Logs in by phone number."""

    phone_number: str
    id: int | None = None
    hashed_password: str | None = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    role: str = ROLE_ADMIN
    created_at: str | None = None
