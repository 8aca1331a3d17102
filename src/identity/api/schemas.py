"""Pydantic request/response schemas for the auth endpoints.

These mirror the backend's wire format and are kept separate from the
session's own state.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# --- Request Schemas ---


class Credentials(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={"examples": [{"email": "jane.doe@example.com", "password": "s3cret!"}]},
    )

    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [
                {
                    "email": "jane.doe@example.com",
                    "password": "s3cret!",
                    "first_name": "Jane",
                    "last_name": "Doe",
                    "phone": "0712345678",
                }
            ]
        },
    )

    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=20)


class PasswordResetRequest(BaseModel):
    email: str = Field(..., max_length=254)


class PasswordResetConfirmation(BaseModel):
    model_config = ConfigDict(extra="allow")

    new_password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)


# --- Response Schemas ---


class TokenPair(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    token_type: str = "bearer"


class AccessTokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    # Present only when the backend rotates refresh tokens
    refresh_token: str | None = None


class UserProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | int
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    role: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class MessageResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str | None = None
