"""
api/routes/v1/auth.py -- Account registration, login and profile endpoints.

Routes:
  POST /api/v1/register   -- create an account; 201, 409 on duplicate
  POST /api/v1/login      -- email/password login; returns a bearer token
  GET  /api/v1/user       -- profile of the authenticated account

Security:
  AccountService.login() equalizes timing and returns one error for both
  unknown email and wrong password -- never inline store + hasher calls here.
  Cache-Control: no-store on login responses so tokens are not cached.

Handlers are plain `def`: the services block on bcrypt and the database, and
FastAPI runs sync handlers in its threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import AccountResponse, LoginRequest, LoginResponse, RegisterRequest
from auth.dependencies import get_current_account_id
from auth.service import AccountService

# Auth policy:
# - POST /api/v1/register: public
# - POST /api/v1/login:    public
# - GET  /api/v1/user:     requires auth (get_current_account_id)
router = APIRouter()


def _accounts(request: Request) -> AccountService:
    return request.app.state.account_service


@router.post("/register", response_model=AccountResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> AccountResponse:
    """Register a new account. The response never includes the password hash."""
    account = _accounts(request).register(body.username, body.email, body.password)
    return AccountResponse.from_account(account)


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Exchange email and password for a bearer token.

    InvalidCredentials propagates to the ServiceError handler in api/main.py,
    which answers 401 "invalid_credentials" for both failure modes.
    """
    issued = _accounts(request).login(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=issued.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=issued.expires_in,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/user", response_model=AccountResponse)
def get_user(request: Request, account_id: int = Depends(get_current_account_id)) -> AccountResponse:
    """Return the profile of the account the bearer token was issued for."""
    account = _accounts(request).get_profile(account_id)
    return AccountResponse.from_account(account)
