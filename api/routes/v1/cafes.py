"""
api/routes/v1/cafes.py -- Café profile routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET  /cafe/my-cafe        -- profile of the café bound by the guard
  PUT  /cafe/update         -- update name / password / phone numbers
  GET  /cafes/{cafe_id}     -- public profile for menu browsers

The café guard (require_cafe) binds request.state.principal_id; self-service
handlers read the café ID from there and never from the URL, so one café can
never address another café's profile.

Logo upload is out of scope here; the logo field is read-only.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import CafeResponse, CafeUpdate, PublicCafeResponse
from auth.dependencies import require_cafe
from auth.passwords import hash_password
from auth.store import PrincipalStore

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Cafe not found."})


# ---------------------------------------------------------------------------
# Café self-service (café role)
# ---------------------------------------------------------------------------


@router.get("/cafe/my-cafe", response_model=CafeResponse, dependencies=[Depends(require_cafe)])
def get_my_cafe(request: Request) -> CafeResponse:
    """Return the profile of the authenticated café.

    404 when the token is valid but the café row has since been deleted --
    tokens are stateless and outlive their principal.
    """
    store: PrincipalStore = request.app.state.store
    cafe = store.get_cafe_by_id(request.state.principal_id)
    if cafe is None:
        raise _not_found()
    return CafeResponse.from_cafe(cafe)


@router.put("/cafe/update", response_model=CafeResponse, dependencies=[Depends(require_cafe)])
def update_my_cafe(request: Request, body: CafeUpdate) -> CafeResponse:
    """Update the authenticated café's name, password and/or phone numbers.

    A new password is bcrypt-hashed before it reaches the store. Tokens issued
    before a password change stay valid until they expire.
    """
    store: PrincipalStore = request.app.state.store
    hashed = hash_password(body.password) if body.password else None
    cafe = store.update_cafe(
        request.state.principal_id,
        name=body.name,
        hashed_password=hashed,
        phone_numbers=body.phone_numbers,
    )
    if cafe is None:
        raise _not_found()
    return CafeResponse.from_cafe(cafe)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.get("/cafes/{cafe_id}", response_model=PublicCafeResponse)
def get_cafe(request: Request, cafe_id: int) -> PublicCafeResponse:
    """Public café profile. No authentication -- customers browse menus anonymously."""
    store: PrincipalStore = request.app.state.store
    cafe = store.get_cafe_by_id(cafe_id)
    if cafe is None:
        raise _not_found()
    return PublicCafeResponse.from_cafe(cafe)
