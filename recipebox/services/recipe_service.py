"""
RecipeBox Backend — Recipe Service (Recipe Store)
===================================================

What:  Owner-scoped create, list, search, update and delete of recipes.
How:   Async SQLAlchemy queries on the `recipes` table; every datastore
       failure is logged and wrapped in DatabaseError with a short
       per-operation message.
Who:   Called by the /auth/recipe and /auth/searchRecipes route handlers.

Ownership rules:
    list / search     only the requester's recipes
    update            404 if the id is unknown, 403 if owned by someone else
    delete            no-op if the id is unknown, 403 if owned by someone else
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recipebox.exceptions import DatabaseError, ForbiddenError, NotFoundError
from recipebox.models.recipe import Recipe
from recipebox.schemas.recipe import RecipeCreate, RecipeResponse, RecipeUpdate

logger = logging.getLogger(__name__)


def case_insensitive(pattern: str) -> str:
    """
    Prefix an embedded `(?i)` option.

    SQLite's REGEXP (Python's re.search) ignores regexp_match(flags=...), while
    both it and PostgreSQL's ARE engine honour a leading `(?i)`.
    """
    return f"(?i){pattern}"


class RecipeService:
    """
    Business logic layer for recipe operations.

    Stateless: receives the request's AsyncSession on every call. Writes are
    flushed here and committed by get_db_session when the handler returns.
    """

    async def create(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        payload: RecipeCreate,
        image_url: Optional[str] = None,
    ) -> RecipeResponse:
        """
        Persist a new recipe owned by owner_id.

        The image (if any) is already on disk; only its URL is stored.

        Raises:
            DatabaseError: insert failed (→ 500 "Error adding recipe")
        """
        recipe = Recipe(
            title=payload.title,
            ingredients=list(payload.ingredients),
            instructions=payload.instructions,
            image_url=image_url,
            user_id=owner_id,
        )
        try:
            db.add(recipe)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error saving recipe: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error adding recipe",
                context={"owner_id": str(owner_id), "error_type": type(e).__name__},
            )

        logger.info("Recipe %s created for user %s", recipe.id, owner_id)
        return RecipeResponse.model_validate(recipe)

    async def list_by_owner(self, db: AsyncSession, owner_id: uuid.UUID) -> List[RecipeResponse]:
        """All recipes of owner_id in insertion order."""
        try:
            result = await db.execute(
                select(Recipe)
                .where(Recipe.user_id == owner_id)
                .order_by(Recipe.created_at)
            )
            recipes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing recipes: %s", str(e))
            raise DatabaseError(
                message="Error fetching recipes",
                context={"owner_id": str(owner_id), "error_type": type(e).__name__},
            )
        return [RecipeResponse.model_validate(r) for r in recipes]

    async def search_by_owner_and_title(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        pattern: str,
    ) -> List[RecipeResponse]:
        """
        Case-insensitive regular-expression match on title, restricted to owner_id.

        A plain word behaves as a substring search; `^So`, `s.up` and the like
        are interpreted as regex. An invalid pattern is rejected by the
        datastore and surfaces as DatabaseError.

        Query (PostgreSQL):
            SELECT * FROM recipes
            WHERE user_id = :owner AND title ~ '(?i)' || :pattern
            ORDER BY created_at
        """
        try:
            result = await db.execute(
                select(Recipe)
                .where(
                    Recipe.user_id == owner_id,
                    Recipe.title.regexp_match(case_insensitive(pattern)),
                )
                .order_by(Recipe.created_at)
            )
            recipes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error searching recipes: %s", str(e))
            raise DatabaseError(
                message="Error searching recipes",
                context={"owner_id": str(owner_id), "error_type": type(e).__name__},
            )
        return [RecipeResponse.model_validate(r) for r in recipes]

    async def _get(self, db: AsyncSession, recipe_id: uuid.UUID, message: str) -> Optional[Recipe]:
        try:
            result = await db.execute(select(Recipe).where(Recipe.id == recipe_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching recipe %s: %s", recipe_id, str(e))
            raise DatabaseError(
                message=message,
                context={"recipe_id": str(recipe_id), "error_type": type(e).__name__},
            )

    async def update_by_id(
        self,
        db: AsyncSession,
        recipe_id: uuid.UUID,
        owner_id: uuid.UUID,
        payload: RecipeUpdate,
    ) -> RecipeResponse:
        """
        Overwrite title, ingredients and instructions. Owner and image are untouched.

        Raises:
            NotFoundError: no recipe with this id (→ 404)
            ForbiddenError: recipe belongs to another user (→ 403)
            DatabaseError: datastore failure (→ 500 "Error updating recipe")
        """
        recipe = await self._get(db, recipe_id, "Error updating recipe")
        if recipe is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        if recipe.user_id != owner_id:
            logger.warning("User %s tried to update recipe %s owned by %s", owner_id, recipe_id, recipe.user_id)
            raise ForbiddenError(resource="recipe", resource_id=str(recipe_id))

        recipe.title = payload.title
        recipe.ingredients = list(payload.ingredients)
        recipe.instructions = payload.instructions
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating recipe %s: %s", recipe_id, str(e))
            raise DatabaseError(
                message="Error updating recipe",
                context={"recipe_id": str(recipe_id), "error_type": type(e).__name__},
            )

        logger.info("Recipe %s updated", recipe_id)
        return RecipeResponse.model_validate(recipe)

    async def delete_by_id(
        self,
        db: AsyncSession,
        recipe_id: uuid.UUID,
        owner_id: uuid.UUID,
    ) -> None:
        """
        Remove a recipe owned by owner_id. Unknown ids are a silent no-op.

        Raises:
            ForbiddenError: recipe belongs to another user (→ 403)
            DatabaseError: datastore failure (→ 500 "Error deleting recipe")
        """
        recipe = await self._get(db, recipe_id, "Error deleting recipe")
        if recipe is None:
            logger.debug("Delete of unknown recipe %s ignored", recipe_id)
            return
        if recipe.user_id != owner_id:
            logger.warning("User %s tried to delete recipe %s owned by %s", owner_id, recipe_id, recipe.user_id)
            raise ForbiddenError(resource="recipe", resource_id=str(recipe_id))

        try:
            await db.delete(recipe)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting recipe %s: %s", recipe_id, str(e))
            raise DatabaseError(
                message="Error deleting recipe",
                context={"recipe_id": str(recipe_id), "error_type": type(e).__name__},
            )
        logger.info("Recipe %s deleted", recipe_id)


recipe_service = RecipeService()
