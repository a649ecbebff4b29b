"""
RecipeBox Backend — Authentication Schemas
============================================

What:  Request/response bodies for /auth/register and /auth/login.

Only presence is checked. Email format is not validated; the address is
used as an opaque login key.
"""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(json_schema_extra={"example": "A"})
    email: str = Field(json_schema_extra={"example": "a@x.com"})
    password: str = Field(json_schema_extra={"example": "p"})


class LoginRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    email: str
    password: str


class TokenResponse(BaseModel):
    """Returned by both register and login."""

    token: str = Field(description="Bearer token for the Authorization header")
