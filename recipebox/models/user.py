"""
RecipeBox Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table (credential store).
Who:   Used by UserService for registration and login; by Alembic for schema management.

Table Design:
    - UUID primary key generated in Python (portable across PostgreSQL and SQLite)
    - email carries a UNIQUE constraint; duplicate registration fails at flush time
    - password_hash holds a bcrypt hash ($2b$...), never the raw password
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recipebox.database import Base


class User(Base):
    """
    A registered user.

    Lifecycle:
        Created on register; never mutated or deleted.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Login key. Stored as given; uniqueness is exact-match.
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
