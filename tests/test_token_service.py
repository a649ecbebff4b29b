"""
RecipeBox Backend — Token Service Unit Tests
==============================================

What we test:
    ✅ Issued tokens verify and return the same user id
    ✅ Tokens always carry an exp claim
    ✅ Wrong secret, expired, malformed, missing exp, bad subject → InvalidTokenError
    ✅ Empty secret is refused at construction
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from recipebox.exceptions import InvalidTokenError, UnauthorizedError
from recipebox.services.token_service import TokenService

SECRET = "unit-test-secret-key-long-enough-for-hs256"


class TestTokenIssue:

    def setup_method(self):
        self.service = TokenService(secret=SECRET, expires_minutes=30)

    def test_issue_then_verify_returns_user_id(self):
        user_id = uuid.uuid4()
        token = self.service.issue(user_id)
        assert self.service.verify(token) == user_id

    def test_issued_token_has_expiry(self):
        token = self.service.issue(uuid.uuid4())
        claims = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert "exp" in claims
        lifetime = claims["exp"] - claims["iat"]
        assert lifetime == 30 * 60

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService(secret="")


class TestTokenVerify:

    def setup_method(self):
        self.service = TokenService(secret=SECRET)

    def test_wrong_secret(self):
        other = TokenService(secret="a-completely-different-secret-of-some-length")
        token = other.issue(uuid.uuid4())
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_expired_token(self):
        expired = TokenService(secret=SECRET, expires_minutes=-1)
        token = expired.issue(uuid.uuid4())
        with pytest.raises(InvalidTokenError) as exc_info:
            self.service.verify(token)
        assert exc_info.value.context["reason"] == "expired"

    def test_token_without_exp_rejected(self):
        token = jwt.encode({"sub": str(uuid.uuid4())}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_token_without_sub_rejected(self):
        exp = datetime.now(timezone.utc) + timedelta(minutes=5)
        token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_non_uuid_subject_rejected(self):
        exp = datetime.now(timezone.utc) + timedelta(minutes=5)
        token = jwt.encode({"sub": "not-a-uuid", "exp": exp}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError) as exc_info:
            self.service.verify(token)
        assert exc_info.value.context["reason"] == "bad_subject"

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer x"])
    def test_malformed_token(self, token):
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_invalid_token_is_unauthorized(self):
        """The middleware catches UnauthorizedError; InvalidTokenError must be one."""
        assert issubclass(InvalidTokenError, UnauthorizedError)
