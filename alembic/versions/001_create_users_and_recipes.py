"""Create users and recipes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `users` credential table and the `recipes` table.
How:   Portable column types (Uuid, JSON, timezone-aware DateTime) so the same
       migration runs on PostgreSQL and SQLite.

recipes.user_id has no FOREIGN KEY: owners are not validated on insert and
deleting a user (not currently possible) would not cascade.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column(
            "password_hash",
            sa.String(128),
            nullable=False,
            comment="bcrypt hash; the raw password is never stored",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "recipes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column(
            "ingredients",
            sa.JSON(),
            nullable=False,
            comment="Ordered JSON array of ingredient lines",
        ),
        sa.Column("instructions", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "image_url",
            sa.String(1024),
            nullable=True,
            comment="Public URL of the uploaded image, served from /uploads",
        ),
        sa.Column("user_id", sa.Uuid(), nullable=False, comment="Owning user id (no FK)"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_recipes_user_created", "recipes", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_recipes_user_created", table_name="recipes")
    op.drop_table("recipes")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
