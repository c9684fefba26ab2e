"""
auth/dependencies.py -- FastAPI Depends() adapters around the AccessGuard.

The guard itself (auth/guard.py) is framework-free. These helpers:
  1. pull the shared AuthService off app.state,
  2. run the guard for the required role against request.headers,
  3. bind the admitted identity to request.state.principal_id,
  4. translate AuthError into HTTPException with the structured error detail.

require_cafe() gates café self-service routes; require_admin() gates the
administrator routes. A valid admin token on a café route is a 403, not a 401.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because this module is part of the FastAPI dependency
injection system. It does not import from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import AuthError
from auth.models import ROLE_ADMIN, ROLE_CAFE, Principal
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def _admit(request: Request, role: str) -> Principal:
    auth: AuthService = get_auth_service(request)
    try:
        principal = auth.authenticate(request.headers, role=role)
    except AuthError as exc:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        raise HTTPException(
            status_code=exc.status_code,
            detail={"code": exc.code, "message": exc.message},
            headers=headers,
        ) from exc
    request.state.principal_id = principal.identity
    request.state.principal_role = principal.role
    return principal


def require_cafe(request: Request) -> Principal:
    """Require a valid café token. Raises HTTP 401 if unauthenticated, 403 on another role.

    Use as a FastAPI dependency:
        @router.get("/cafe/my-cafe")
        async def route(principal: Principal = Depends(require_cafe)): ...
    """
    return _admit(request, ROLE_CAFE)


def require_admin(request: Request) -> Principal:
    """Require a valid administrator token. Raises HTTP 401 if unauthenticated, 403 on another role."""
    return _admit(request, ROLE_ADMIN)
