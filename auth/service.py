"""
auth/service.py -- AuthService facade exposed to route handlers.

Wires the Credential Verifier, TokenService and per-role AccessGuards into the
three operations the HTTP layer needs:

  login_cafe / login_admin   credentials      -> TokenPair | CredentialMismatch
  authenticate               request headers  -> Principal | admission error
  refresh                    refresh token    -> TokenPair | token error

One instance is built in the app lifespan and stored on app.state.auth.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from auth.guard import AccessGuard
from auth.models import ROLE_ADMIN, ROLE_CAFE, Principal, TokenPair
from auth.passwords import authenticate_admin, authenticate_cafe
from auth.store import PrincipalStore
from auth.tokens import TokenService

logger = logging.getLogger("menuservice.auth")


class AuthService:
    def __init__(self, store: PrincipalStore, tokens: TokenService) -> None:
        self.store = store
        self.tokens = tokens
        self._guards = {
            ROLE_CAFE: AccessGuard(tokens, required_role=ROLE_CAFE),
            ROLE_ADMIN: AccessGuard(tokens, required_role=ROLE_ADMIN),
        }

    def login_cafe(self, login: str, password: str) -> TokenPair:
        principal = authenticate_cafe(self.store, login, password)
        logger.info("Cafe %s logged in", principal.identity)
        return self.tokens.issue(principal.role, principal.identity)

    def login_admin(self, phone_number: str, password: str) -> TokenPair:
        principal = authenticate_admin(self.store, phone_number, password)
        logger.info("Admin %s logged in", principal.identity)
        return self.tokens.issue(principal.role, principal.identity)

    def authenticate(self, headers: Mapping[str, str], role: str = ROLE_CAFE) -> Principal:
        """Run the AccessGuard for role. Raises KeyError for a role with no guard."""
        return self._guards[role].admit(headers)

    def refresh(self, refresh_token: str) -> TokenPair:
        return self.tokens.refresh(refresh_token)
