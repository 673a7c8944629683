"""Pydantic schemas for user data validation."""

from datetime import date
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    """Base user schema."""
    email: EmailStr
    username: str = Field(..., min_length=1, max_length=50)


class UserCreate(UserBase):
    """Schema for user registration."""
    password: str = Field(..., min_length=6)


class User(UserBase):
    """Schema for user response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_date: date


class UserWithToken(User):
    """Schema for user response carrying an access token."""
    access_token: str
    token_type: str = "bearer"


class UserJWTPayload(BaseModel):
    """Claims carried by the bearer credential."""
    sub: str
    email: EmailStr


class PasswordChange(BaseModel):
    """Schema for changing the password of the signed-in user."""
    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(..., alias="oldPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")
