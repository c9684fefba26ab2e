"""
auth/guard.py -- Access Guard: request-boundary admission decision.

A pure function of (headers) -> Principal, independent of FastAPI, so it can
be unit-tested with a plain dict. auth/dependencies.py adapts it to FastAPI's
Depends() system and binds the admitted identity to request.state.

Per-request state machine, terminal on first failure:
  1. Extract   Authorization: Bearer <token>   else MissingAuthHeader
  2. Validate  TokenService.validate()          token errors propagate (401)
  3. Authorize claims.role == required_role     else RoleForbidden (403)
  4. Admit     return Principal(identity, role)

Step 1 never touches the token, so a missing or non-Bearer header is rejected
before any parsing happens.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from auth.errors import MissingAuthHeader, RoleForbidden
from auth.models import ROLE_CAFE, Principal
from auth.tokens import TokenService

logger = logging.getLogger("menuservice.auth")

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the raw token from an Authorization: Bearer header.

    Header names are matched case-insensitively so both Starlette Headers and
    plain dicts work. Raises MissingAuthHeader if the header is absent or does
    not use the Bearer scheme.
    """
    value = None
    for name, header_value in headers.items():
        if name.lower() == "authorization":
            value = header_value
            break
    if value is None or not value.startswith(_BEARER_PREFIX):
        raise MissingAuthHeader()
    return value[len(_BEARER_PREFIX) :].strip()


class AccessGuard:
    """Admits requests whose bearer token is valid and carries required_role."""

    def __init__(self, tokens: TokenService, required_role: str = ROLE_CAFE) -> None:
        self.tokens = tokens
        self.required_role = required_role

    def admit(self, headers: Mapping[str, str]) -> Principal:
        token = extract_bearer_token(headers)
        claims = self.tokens.validate(token)
        if claims.role != self.required_role:
            logger.info("Rejected principal %s: role %r, %r required", claims.identity, claims.role, self.required_role)
            raise RoleForbidden(f"Forbidden: {self.required_role} access required.")
        return claims.principal
