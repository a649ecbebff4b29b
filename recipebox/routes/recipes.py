"""
RecipeBox Backend — Recipe Route Handlers
===========================================

What:  Owner-scoped recipe CRUD and title search.
How:   AccessControlMiddleware has already verified the bearer token; the
       handlers read the user id via Depends(get_current_user_id) and
       delegate to RecipeService.

Routes:
    POST   /auth/recipe                  201 recipe   (multipart or JSON, optional image)
    GET    /auth/recipe                  200 [recipe]
    PUT    /auth/recipe/{recipe_id}      200 recipe   (404 unknown id, 403 not owner)
    DELETE /auth/recipe/{recipe_id}      204          (unknown id is a no-op, 403 not owner)
    GET    /auth/searchRecipes/{query}   200 [recipe]   (query is a case-insensitive regex)

Ownership on update and delete:
    PUT of an unknown id answers 404 rather than 200 with a null body, and
    PUT or DELETE of another user's recipe answers 403 and leaves it untouched.

Create flow with an image:
    1. Parse the multipart form (title, ingredients, instructions, image)
    2. UploadService writes the image and returns its public URL
    3. RecipeService persists the recipe with that URL
    4. If step 3 fails for any reason, the stored image is removed again
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from recipebox.database import get_db_session
from recipebox.dependencies import get_current_user_id, get_upload_service
from recipebox.exceptions import ValidationError
from recipebox.schemas.common import ErrorResponse
from recipebox.schemas.recipe import RecipeCreate, RecipeResponse, RecipeUpdate
from recipebox.services.recipe_service import recipe_service
from recipebox.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Recipes"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

_RECIPE_FIELDS_SCHEMA = {
    "title": {"type": "string"},
    "ingredients": {"type": "array", "items": {"type": "string"}},
    "instructions": {"type": "string"},
}

_CREATE_BODY_SCHEMA = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "required": ["title", "ingredients", "instructions"],
                    "properties": {
                        **_RECIPE_FIELDS_SCHEMA,
                        "image": {"type": "string", "format": "binary"},
                    },
                },
            },
            "application/json": {
                "schema": {
                    "type": "object",
                    "required": ["title", "ingredients", "instructions"],
                    "properties": _RECIPE_FIELDS_SCHEMA,
                },
            },
        },
    },
}


async def read_recipe_body(request: Request) -> Tuple[RecipeCreate, Optional[UploadFile]]:
    """
    Parse the create-recipe body from either multipart/urlencoded form data or JSON.

    Returns:
        (validated fields, image upload or None)

    Raises:
        ValidationError: unreadable body, or a required field is missing
    """
    content_type = request.headers.get("content-type", "")
    image: Optional[UploadFile] = None

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data: Dict[str, Any] = {
            key: form.get(key)
            for key in ("title", "instructions")
            if isinstance(form.get(key), str)
        }
        ingredients: List[str] = [v for v in form.getlist("ingredients") if isinstance(v, str)]
        if ingredients:
            data["ingredients"] = ingredients
        candidate = form.get("image")
        if isinstance(candidate, UploadFile) and candidate.filename:
            image = candidate
    else:
        try:
            data = await request.json()
        except ValueError:
            raise ValidationError(message="Request body must be JSON or multipart form data.")
        if not isinstance(data, dict):
            raise ValidationError(message="Request body must be a JSON object.")

    try:
        return RecipeCreate.model_validate(data), image
    except PydanticValidationError as e:
        raise ValidationError.from_errors(e.errors())


@router.post(
    "/recipe",
    status_code=201,
    response_model=RecipeResponse,
    responses={
        201: {"description": "Recipe created", "model": RecipeResponse},
        400: {"description": "Missing field or oversized image", "model": ErrorResponse},
        403: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Error adding recipe", "model": ErrorResponse},
    },
    summary="Create a recipe, optionally with an image",
    openapi_extra=_CREATE_BODY_SCHEMA,
)
async def create_recipe(
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    uploads: UploadService = Depends(get_upload_service),
) -> RecipeResponse:
    payload, image = await read_recipe_body(request)

    image_path: Optional[str] = None
    image_url: Optional[str] = None
    try:
        if image is not None:
            content = await uploads.read_upload(image)
            image_path, image_url = await uploads.store_image(image.filename, content)
        return await recipe_service.create(db, owner_id, payload, image_url=image_url)
    except Exception:
        if image_path:
            await uploads.cleanup_file(image_path)
        raise
    finally:
        if image is not None:
            await image.close()


@router.get(
    "/recipe",
    response_model=List[RecipeResponse],
    responses={
        403: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Error fetching recipes", "model": ErrorResponse},
    },
    summary="List the caller's recipes",
)
async def list_recipes(
    owner_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecipeResponse]:
    return await recipe_service.list_by_owner(db, owner_id)


@router.put(
    "/recipe/{recipe_id}",
    response_model=RecipeResponse,
    responses={
        400: {"description": "Missing field or malformed id", "model": ErrorResponse},
        403: {"description": "Invalid token, or recipe owned by another user", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
        500: {"description": "Error updating recipe", "model": ErrorResponse},
    },
    summary="Replace title, ingredients and instructions of a recipe",
)
async def update_recipe(
    recipe_id: uuid.UUID,
    body: RecipeUpdate,
    owner_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    return await recipe_service.update_by_id(db, recipe_id, owner_id, body)


@router.delete(
    "/recipe/{recipe_id}",
    status_code=204,
    response_class=Response,
    responses={
        403: {"description": "Invalid token, or recipe owned by another user", "model": ErrorResponse},
        500: {"description": "Error deleting recipe", "model": ErrorResponse},
    },
    summary="Delete a recipe (unknown ids succeed)",
)
async def delete_recipe(
    recipe_id: uuid.UUID,
    owner_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await recipe_service.delete_by_id(db, recipe_id, owner_id)
    return Response(status_code=204)


@router.get(
    "/searchRecipes/{query}",
    response_model=List[RecipeResponse],
    responses={
        403: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Error searching recipes, or an invalid pattern", "model": ErrorResponse},
    },
    summary="Case-insensitive regex title search within the caller's recipes",
)
async def search_recipes(
    query: str,
    owner_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecipeResponse]:
    return await recipe_service.search_by_owner_and_title(db, owner_id, query)
