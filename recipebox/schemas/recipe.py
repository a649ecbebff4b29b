"""
RecipeBox Backend — Recipe Request/Response Schemas
=====================================================

What:  Pydantic models defining the recipe API contract.
How:   Request models check presence and coerce types; the response model is
       built from ORM objects and serialized with camelCase keys
       (imageUrl, userId, createdAt) to match the frontend.
"""

import json
import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeFields(BaseModel):
    """
    What:  The mutable fields of a recipe, all required.
    Who:   Body of POST /auth/recipe (JSON or multipart) and PUT /auth/recipe/{id}.

    Coercion rules for ingredients:
        - a list of strings is taken as-is
        - a single string becomes a one-element list
        - a single string holding a JSON array is decoded
          (multipart clients often send `ingredients='["a","b"]'`)
    Numbers are accepted wherever a string is expected.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: str = Field(description="Recipe title", json_schema_extra={"example": "Soup"})
    ingredients: List[str] = Field(
        description="Ordered ingredient lines",
        json_schema_extra={"example": ["water", "salt"]},
    )
    instructions: str = Field(description="Free-text instructions", json_schema_extra={"example": "boil"})

    @field_validator("ingredients", mode="before")
    @classmethod
    def coerce_ingredients(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple)) and len(v) == 1 and isinstance(v[0], str):
            candidate = v[0].strip()
            if candidate.startswith("["):
                try:
                    decoded = json.loads(candidate)
                except ValueError:
                    return list(v)
                if isinstance(decoded, list):
                    return decoded
        return v


class RecipeCreate(RecipeFields):
    pass


class RecipeUpdate(RecipeFields):
    pass


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeResponse(BaseModel):
    """
    What:  Full representation of a stored recipe.
    Who:   Returned by create, update, list and search.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(description="Recipe identifier")
    title: str
    ingredients: List[str]
    instructions: str
    image_url: Optional[str] = Field(
        default=None,
        serialization_alias="imageUrl",
        description="Public URL of the attached image, or null",
    )
    user_id: uuid.UUID = Field(serialization_alias="userId", description="Owner identifier")
    created_at: datetime = Field(serialization_alias="createdAt")
