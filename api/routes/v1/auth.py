"""
api/routes/v1/auth.py -- Login, refresh and identity endpoints.

Routes:
  POST /api/v1/cafe/auth/login       -- café login by login name; returns token pair
  POST /api/v1/admin/auth/login      -- administrator login by phone number; returns token pair
  POST /api/v1/cafe/refresh-token    -- exchange a refresh token for a new pair
  GET  /api/v1/cafe/auth/me          -- identity bound by the café guard

Security:
  Both login routes are rate-limited per client IP (LOGIN_RATE_LIMIT).
  Unknown login and wrong password return the same "bad_credentials" error.
  Cache-Control: no-store on every response that carries tokens.
  Refresh does not revoke the presented token (stateless design).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import AdminLoginRequest, CafeLoginRequest, MeResponse, RefreshRequest, TokenPairResponse
from auth.dependencies import get_auth_service, require_cafe
from auth.errors import CredentialMismatch, TokenError
from auth.models import Principal, TokenPair
from auth.service import AuthService

logger = logging.getLogger("menuservice.api")

# Auth policy:
# - POST /api/v1/cafe/auth/login:     public
# - POST /api/v1/admin/auth/login:    public
# - POST /api/v1/cafe/refresh-token:  public -- the refresh token is the credential
# - GET  /api/v1/cafe/auth/me:        requires café role (require_cafe)
router = APIRouter()


def _token_response(auth: AuthService, pair: TokenPair) -> JSONResponse:
    expires_in = int(auth.tokens.access_lifetime.total_seconds())
    resp = JSONResponse(status_code=200, content=TokenPairResponse.from_pair(pair, expires_in).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})
    resp.headers["Cache-Control"] = "no-store"
    if status_code == 401:
        resp.headers["WWW-Authenticate"] = "Bearer"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(LOGIN_RATE_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/cafe/auth/login", response_model=TokenPairResponse)
def cafe_login(request: Request, body: CafeLoginRequest) -> JSONResponse:
    """Authenticate a café by login + password and return a token pair."""
    auth: AuthService = get_auth_service(request)
    try:
        pair = auth.login_cafe(body.login, body.password)
    except CredentialMismatch as exc:
        logger.info("Failed cafe login for %r", body.login)
        return _error_response(401, exc.code, exc.message)
    return _token_response(auth, pair)


@limiter.limit(LOGIN_RATE_LIMIT)
@router.post("/admin/auth/login", response_model=TokenPairResponse)
def admin_login(request: Request, body: AdminLoginRequest) -> JSONResponse:
    """Authenticate an administrator by phone number + password and return a token pair."""
    auth: AuthService = get_auth_service(request)
    try:
        pair = auth.login_admin(body.phone_number, body.password)
    except CredentialMismatch as exc:
        logger.info("Failed admin login for %r", body.phone_number)
        return _error_response(401, exc.code, exc.message)
    return _token_response(auth, pair)


@router.post("/cafe/refresh-token", response_model=TokenPairResponse)
def refresh_token(request: Request, body: RefreshRequest) -> JSONResponse:
    """Exchange a valid, unexpired refresh token for a brand-new token pair.

    Any validation failure (expired, malformed, bad signature, missing claim)
    is returned as 401 with the precise error code; no tokens are issued.
    """
    auth: AuthService = get_auth_service(request)
    try:
        pair = auth.refresh(body.refresh_token)
    except TokenError as exc:
        logger.info("Refresh rejected: %s", exc.code)
        return _error_response(401, exc.code, exc.message)
    return _token_response(auth, pair)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/cafe/auth/me", response_model=MeResponse)
def me(request: Request, principal: Principal = Depends(require_cafe)) -> MeResponse:
    """Return the identity the café guard bound to this request."""
    return MeResponse(principal_id=request.state.principal_id, role=principal.role)
