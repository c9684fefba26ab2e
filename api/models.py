"""
API request and response models for the menu service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
hashed_password never appears in any response model.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from auth.models import Cafe, TokenPair
from auth.passwords import MAX_PASSWORD_BYTES, password_too_long


def _fits_bcrypt(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


# Presented at login: an over-long secret is a credential mismatch, not a 422.
_Password = Annotated[str, Field(min_length=1, max_length=255)]
# Stored via bcrypt, which refuses input over 72 bytes.
_NewPassword = Annotated[str, Field(min_length=1), AfterValidator(_fits_bcrypt)]
_PhoneNumber = Annotated[str, Field(max_length=32)]


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class CafeLoginRequest(BaseModel):
    """Request body for POST /api/v1/cafe/auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    login: str = Field(min_length=1, max_length=255)
    password: _Password


class AdminLoginRequest(BaseModel):
    """Request body for POST /api/v1/admin/auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    phone_number: str = Field(min_length=1, max_length=32)
    password: _Password


class RefreshRequest(BaseModel):
    """Request body for POST /api/v1/cafe/refresh-token."""

    refresh_token: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class TokenPairResponse(BaseModel):
    """Access + refresh pair returned by login and refresh."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

    @classmethod
    def from_pair(cls, pair: TokenPair, expires_in: int) -> "TokenPairResponse":
        return cls(access_token=pair.access_token, refresh_token=pair.refresh_token, expires_in=expires_in)


class MeResponse(BaseModel):
    """Response for GET /api/v1/cafe/auth/me."""

    model_config = ConfigDict(frozen=True)

    principal_id: int
    role: str


# ---------------------------------------------------------------------------
# Cafe -- request/response models
# ---------------------------------------------------------------------------


class CafeCreate(BaseModel):
    """Request body for POST /api/v1/admin/cafes."""

    model_config = ConfigDict(str_strip_whitespace=True)

    login: str = Field(min_length=1, max_length=255)
    password: _NewPassword
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(default="", max_length=64)
    expiry_date: Optional[str] = None
    phone_numbers: list[_PhoneNumber] = Field(default_factory=list, max_length=10)


class CafeUpdate(BaseModel):
    """Request body for PUT /api/v1/cafe/update. Omitted fields are left unchanged.

    A non-empty phone_numbers list replaces the stored set; blank entries are
    dropped by the store, so a list of only blanks clears the numbers.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    password: Optional[Annotated[str, AfterValidator(_fits_bcrypt)]] = None
    phone_numbers: Optional[list[_PhoneNumber]] = Field(default=None, max_length=10)


class CafeResponse(BaseModel):
    """Café profile as shown to its owner and to administrators."""

    model_config = ConfigDict(frozen=True)

    id: int
    login: str
    name: str
    role: str
    logo: str
    code: str
    expiry_date: Optional[str]
    phone_numbers: list[str]

    @classmethod
    def from_cafe(cls, cafe: Cafe) -> "CafeResponse":
        return cls(
            id=cafe.id,
            login=cafe.login,
            name=cafe.name,
            role=cafe.role,
            logo=cafe.logo,
            code=cafe.code,
            expiry_date=cafe.expiry_date,
            phone_numbers=list(cafe.phone_numbers),
        )


class PublicCafeResponse(BaseModel):
    """Café profile visible to anonymous menu browsers. No login name."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    logo: str
    code: str
    phone_numbers: list[str]

    @classmethod
    def from_cafe(cls, cafe: Cafe) -> "PublicCafeResponse":
        return cls(id=cafe.id, name=cafe.name, logo=cafe.logo, code=cafe.code, phone_numbers=list(cafe.phone_numbers))


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    database: str = "ok"
