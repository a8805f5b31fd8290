# arena/schemas/auth.py
"""
Pydantic schemas for account endpoints.
Defines request models for signup, login, profile and usage updates.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

__all__ = [
    "SignupIn",
    "LoginIn",
    "UpdateTokensIn",
    "ChangePasswordIn",
    "UpdateProfileIn",
]


class SignupIn(BaseModel):
    """
    Request model for account creation.
    Password and confirmPassword must match.
    """
    email: EmailStr
    username: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=6)
    confirmPassword: str = Field(min_length=6)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirmPassword:
            raise ValueError("Passwords don't match")
        return self


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class UpdateTokensIn(BaseModel):
    """Tokens consumed by one completed turn (prompt + answer estimate)."""
    tokens: int = Field(ge=0)


class ChangePasswordIn(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=6)  # New password (minimum 6 characters)


class UpdateProfileIn(BaseModel):
    """
    Request model for profile edits.
    All fields are optional - only provided fields will be updated.
    """
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=20)
