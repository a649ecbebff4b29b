"""
RecipeBox Backend — Authentication Route Handlers
===================================================

What:  POST /auth/register and POST /auth/login.
How:   Validates presence of fields, delegates to UserService, and returns
       a freshly issued bearer token.

Error responses (global exception handlers):
    400 validation_error      missing field
    400 duplicate_email       register with an email already in use
    400 invalid_credentials   login with unknown email or wrong password
    500 server_error          datastore failure
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recipebox.database import get_db_session
from recipebox.dependencies import get_token_service, get_user_service
from recipebox.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from recipebox.schemas.common import ErrorResponse
from recipebox.services.token_service import TokenService
from recipebox.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    responses={
        400: {"description": "Email already registered or field missing", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Create the user and log them in immediately."""
    user_id = await users.register(db, name=body.name, email=body.email, raw_password=body.password)
    return TokenResponse(token=tokens.issue(user_id))


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Exchange email and password for a token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    user = await users.authenticate(db, email=body.email, raw_password=body.password)
    logger.info("User %s logged in", user.id)
    return TokenResponse(token=tokens.issue(user.id))
