"""
RecipeBox Backend — Recipe SQLAlchemy Model
=============================================

What:  ORM model for the `recipes` table.
Who:   Used by RecipeService for CRUD and search; by Alembic for schema management.

Table Design:
    - ingredients: JSON array of strings, order preserved
    - image_url: public URL of an uploaded image, or NULL
    - user_id: owner reference. Indexed, no FOREIGN KEY:
      the owner is not validated for existence and there is no cascade delete.
    - created_at: drives insertion-order listing

    Index on (user_id, created_at):
        Every read is "recipes of one owner, oldest first".
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recipebox.database import Base


class Recipe(Base):
    """
    A recipe owned by exactly one user.

    Lifecycle:
        1. Created by POST /auth/recipe (owner and image fixed from then on)
        2. title / ingredients / instructions overwritten by PUT /auth/recipe/{id}
        3. Removed by DELETE /auth/recipe/{id}
    """

    __tablename__ = "recipes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)

    ingredients: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    instructions: Mapped[str] = mapped_column(Text, nullable=False, default="")

    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True, default=None)

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_recipes_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title='{self.title}', user_id={self.user_id})>"
