"""
auth/errors.py -- Exception taxonomy for the authorization core.

Every failure the core can produce is an AuthError subclass carrying:
  code        -- stable machine-readable string for API clients
  message     -- human-readable text, safe to show to the caller
  status_code -- HTTP status the boundary should answer with

The core raises these; only the boundary (api/main.py exception handler and
auth/dependencies.py) turns them into HTTP responses. Nothing here is retried.

Unauthorized is the common base of every 401 admission failure, so callers
that only care about "not admitted" can catch one class, while tests and logs
can still see the precise kind (expired vs. bad signature vs. malformed).
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all authorization-core failures."""

    code: str = "auth_error"
    message: str = "Authentication failed."
    status_code: int = 401

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(AuthError):
    code = "unauthorized"
    message = "Authentication required."
    status_code = 401


class CredentialMismatch(Unauthorized):
    """Unknown identity or wrong secret. One message for both [no enumeration]."""

    code = "bad_credentials"
    message = "Invalid login credentials."


class MissingAuthHeader(Unauthorized):
    code = "missing_auth_header"
    message = "Authorization header with Bearer token required."


class TokenError(Unauthorized):
    """Base for failures raised while validating a token."""

    code = "invalid_token"
    message = "Invalid token."


class TokenMalformed(TokenError):
    code = "token_malformed"
    message = "Token could not be parsed."


class TokenSignatureInvalid(TokenError):
    """Signature mismatch, or a signing algorithm outside the allowed HMAC family."""

    code = "token_signature_invalid"
    message = "Token signature is invalid."


class TokenExpired(TokenError):
    code = "token_expired"
    message = "Token has expired."


class TokenClaimMissing(TokenError):
    code = "token_claim_missing"
    message = "Token is missing a required claim."


class RoleForbidden(AuthError):
    code = "forbidden"
    message = "Forbidden: insufficient role."
    status_code = 403


class SigningFailure(AuthError):
    """Token construction failed. A server fault, not the caller's."""

    code = "signing_failure"
    message = "Failed to generate tokens."
    status_code = 500


class CredentialHashError(AuthError):
    """The hashing library could not evaluate a stored hash (distinct from a mismatch)."""

    code = "credential_hash_error"
    message = "Failed to verify credentials."
    status_code = 500
