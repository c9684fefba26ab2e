"""
auth/passwords.py -- Credential Verifier: bcrypt hashing and login checks.

Security design decisions:
  bcrypt directly, no passlib wrapper. passlib's internal wrap-bug detection
       creates a password longer than 72 bytes, which bcrypt 4.x rejects with
       an explicit error. Direct bcrypt usage has no compatibility shim.

  Mismatch vs. failure: a wrong password is a normal False. A stored hash
       that bcrypt cannot parse is a server-side data problem and raises
       CredentialHashError so it surfaces as a 500 rather than masquerading
       as a bad password.

  Timing equalization: authenticate_cafe() / authenticate_admin() always run
       bcrypt, against _DUMMY_HASH when the identity does not exist, so
       response time does not reveal whether a login is registered. Both
       failure paths raise the same CredentialMismatch message.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from auth.errors import CredentialHashError, CredentialMismatch
from auth.models import Principal

if TYPE_CHECKING:
    from auth.store import PrincipalStore

logger = logging.getLogger("menuservice.auth")


MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    """bcrypt only accepts the first 72 bytes of UTF-8 input."""
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError for passwords over 72 UTF-8 bytes; bcrypt refuses them
    rather than truncating. The API layer rejects such passwords with a 422
    before they get here.
    """
    if password_too_long(plain):
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A presented password over 72 bytes can never match a stored hash and is
    a plain mismatch. Raises CredentialHashError only if bcrypt cannot
    evaluate the stored hash.
    """
    if password_too_long(plain):
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError as exc:
        logger.error("Stored password hash could not be evaluated: %s", exc)
        raise CredentialHashError() from exc


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("menuservice_timing_dummy")


def _check(password: str, hashed: str | None) -> None:
    if hashed is None:
        verify_password(password, _DUMMY_HASH)
        raise CredentialMismatch()
    if not verify_password(password, hashed):
        raise CredentialMismatch()


def authenticate_cafe(store: PrincipalStore, login: str, password: str) -> Principal:
    """Resolve a café login + password to a Principal or raise CredentialMismatch."""
    cafe = store.get_cafe_by_login(login)
    _check(password, cafe.hashed_password if cafe is not None else None)
    return Principal(identity=cafe.id, role=cafe.role)


def authenticate_admin(store: PrincipalStore, phone_number: str, password: str) -> Principal:
    """Resolve an administrator phone number + password to a Principal or raise CredentialMismatch."""
    admin = store.get_admin_by_phone(phone_number)
    _check(password, admin.hashed_password if admin is not None else None)
    return Principal(identity=admin.id, role=admin.role)
