"""
RecipeBox Backend — Token Issuer/Verifier
===========================================

What:  Issues and verifies signed session tokens (JWT, HMAC-SHA256).
How:   PyJWT encodes {"sub": <user id>, "iat": now, "exp": now + lifetime}
       with the secret injected from Settings. verify() requires both exp
       and sub, so tokens without an expiry are rejected.
Who:   Used by the auth routes (issue) and AccessControlMiddleware (verify).

Failure modes collapse into InvalidTokenError:
    - bad signature / wrong secret
    - malformed token (not three base64 segments, bad JSON)
    - expired token
    - missing exp or sub claim
    - sub that is not a UUID
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from recipebox.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class TokenService:
    """
    Stateless JWT signer bound to one secret and lifetime.

    Example:
        tokens = TokenService(secret="s3cr3t...", expires_minutes=60)
        token = tokens.issue(user.id)
        assert tokens.verify(token) == user.id
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 1440,
    ):
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret")
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = timedelta(minutes=expires_minutes)

    def issue(self, user_id: uuid.UUID) -> str:
        """Produce a signed token carrying user_id in the `sub` claim."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> uuid.UUID:
        """
        Validate signature and expiry; return the embedded user id.

        Raises:
            InvalidTokenError: for any of the failure modes listed in the module docstring.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError(context={"reason": "expired"})
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(context={"reason": type(e).__name__})

        try:
            return uuid.UUID(str(claims["sub"]))
        except ValueError:
            raise InvalidTokenError(context={"reason": "bad_subject"})
