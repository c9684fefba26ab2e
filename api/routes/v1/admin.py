"""
api/routes/v1/admin.py -- Administrator routes for café account provisioning.

Routes:
  POST /admin/cafes   -- create a café account (login + password)
  GET  /admin/cafes   -- list all cafés

Every route requires the admin role. A valid café token is a 403 here.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import CafeCreate, CafeResponse
from auth.dependencies import require_admin
from auth.models import Cafe
from auth.passwords import hash_password
from auth.store import PrincipalStore

logger = logging.getLogger("menuservice.api")

# Router-level dependency applies to every route registered on this router,
# so individual handlers don't each need to repeat Depends(require_admin).
router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/admin/cafes", response_model=CafeResponse, status_code=201)
def create_cafe(request: Request, body: CafeCreate) -> CafeResponse:
    """Create a café account. 409 if the login is already taken."""
    store: PrincipalStore = request.app.state.store
    cafe = Cafe(
        login=body.login,
        name=body.name,
        hashed_password=hash_password(body.password),
        code=body.code,
        expiry_date=body.expiry_date,
        phone_numbers=body.phone_numbers,
    )
    try:
        cafe_id = store.create_cafe(cafe)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A cafe with that login already exists."},
        ) from exc

    logger.info("Admin %s created cafe %s", request.state.principal_id, cafe_id)
    created = store.get_cafe_by_id(cafe_id)
    if created is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "Cafe not found after write."},
        )
    return CafeResponse.from_cafe(created)


@router.get("/admin/cafes", response_model=list[CafeResponse])
def list_cafes(request: Request) -> list[CafeResponse]:
    store: PrincipalStore = request.app.state.store
    return [CafeResponse.from_cafe(c) for c in store.list_cafes()]
