from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

UserRole = Literal["user", "lawyer", "admin"]

_USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class SignupIn(BaseModel):
    email: EmailStr = Field(description="Account e-mail (unique, case-insensitive).")
    password: str = Field(min_length=8, max_length=128, description="Account password.")
    username: str = Field(
        min_length=3,
        max_length=50,
        pattern=_USERNAME_PATTERN,
        description="Public handle (letters, digits, `_`, `.`, `-`).",
        examples=["asha.rao"],
    )
    full_name: str = Field(min_length=1, max_length=255, examples=["Asha Rao"])


class SigninIn(BaseModel):
    login: str = Field(
        min_length=1,
        max_length=255,
        description="Username or e-mail address.",
        examples=["asha.rao"],
    )
    password: str = Field(min_length=1, max_length=128)


class FirebaseSigninIn(BaseModel):
    id_token: str = Field(min_length=1, description="Firebase ID token issued to the client.")
    username: str | None = Field(
        default=None,
        min_length=3,
        max_length=50,
        pattern=_USERNAME_PATTERN,
        description="Username to use when the account is created on first sign-in.",
    )


class RefreshTokensIn(BaseModel):
    refresh_token: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    username: str | None = Field(
        default=None, min_length=3, max_length=50, pattern=_USERNAME_PATTERN
    )
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar: str | None = Field(default=None, max_length=1024)


class RoleUpdate(BaseModel):
    role: UserRole


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    uid: str = Field(description="External identity (generated or Firebase UID).")
    username: str
    email: str
    full_name: str
    role: UserRole
    avatar: str | None = None
    created_at: datetime
    updated_at: datetime


class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token lifetime in seconds.")


class AuthOut(BaseModel):
    user: UserOut
    tokens: TokenPairOut
