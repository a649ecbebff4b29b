"""
RecipeBox Backend — FastAPI Dependencies
==========================================

What:  Accessors for the per-app services stored on app.state by create_app(),
       plus the authenticated identity attached by AccessControlMiddleware.
Who:   Route handlers, via Depends().
"""

import uuid

from fastapi import Request

from recipebox.exceptions import UnauthorizedError
from recipebox.services.token_service import TokenService
from recipebox.services.upload_service import UploadService
from recipebox.services.user_service import UserService


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def get_current_user_id(request: Request) -> uuid.UUID:
    """
    Identity verified by AccessControlMiddleware.

    Raises:
        UnauthorizedError: the route was reached without passing the middleware
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise UnauthorizedError(context={"reason": "no_identity_on_request"})
    return user_id
