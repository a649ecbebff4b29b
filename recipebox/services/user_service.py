"""
RecipeBox Backend — User Service (Credential Store)
=====================================================

What:  Registration, lookup by email, and password verification.
How:   bcrypt with a configurable work factor; inserts rely on the UNIQUE
       constraint on users.email to detect duplicates atomically.
Who:   Called by the /auth/register and /auth/login route handlers.

Password handling:
    bcrypt only looks at the first 72 bytes of its input, and recent
    releases of the `bcrypt` package raise instead of truncating. Passwords
    are UTF-8 encoded and cut to 72 bytes before both hashing and checking.
    Hashing is CPU-bound, so it runs in Starlette's threadpool.
"""

import logging
import uuid
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from recipebox.exceptions import BadCredentialsError, DatabaseError, DuplicateEmailError
from recipebox.models.user import User

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _password_bytes(raw: str) -> bytes:
    return raw.encode("utf-8")[:BCRYPT_MAX_BYTES]


class UserService:
    """
    Business logic for user identity records.

    Responsibilities:
        - register(): hash password, insert user, map unique violation to DuplicateEmailError
        - find_by_email(): single lookup
        - verify_password(): bcrypt check
        - authenticate(): find_by_email + verify_password, BadCredentialsError on failure
    """

    def __init__(self, bcrypt_rounds: int = 10):
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, raw_password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(raw_password), salt).decode("ascii")

    def verify_password(self, raw_password: str, password_hash: str) -> bool:
        """Constant-time comparison via bcrypt; a malformed stored hash never matches."""
        try:
            return bcrypt.checkpw(_password_bytes(raw_password), password_hash.encode("ascii"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False

    async def register(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        raw_password: str,
    ) -> uuid.UUID:
        """
        Create a user and return its identifier.

        Raises:
            DuplicateEmailError: email already registered (→ 400)
            DatabaseError: any other datastore failure (→ 500)
        """
        password_hash = await run_in_threadpool(self.hash_password, raw_password)
        user = User(name=name, email=email, password_hash=password_hash)

        try:
            db.add(user)
            await db.flush()
        except IntegrityError:
            # The dependency rolls the session back when this propagates
            logger.info("Registration rejected: email already in use")
            raise DuplicateEmailError()
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e))
            raise DatabaseError(
                message="Error registering user",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return user.id

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", str(e))
            raise DatabaseError(
                message="Error logging in",
                context={"error_type": type(e).__name__},
            )

    async def authenticate(self, db: AsyncSession, email: str, raw_password: str) -> User:
        """
        Return the user whose email and password match.

        Raises:
            BadCredentialsError: unknown email or wrong password (same error for both)
        """
        user = await self.find_by_email(db, email)
        if user is None:
            raise BadCredentialsError(context={"reason": "unknown_email"})

        matches = await run_in_threadpool(self.verify_password, raw_password, user.password_hash)
        if not matches:
            raise BadCredentialsError(context={"reason": "wrong_password", "user_id": str(user.id)})
        return user
