from pydantic import AliasChoices, BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from emotion_recognition.schemas.token_schema import Token


class UserBase(BaseModel):
    """
    Shared properties for all User schemas.
    """
    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        pattern=r'^[A-Za-z0-9]+$',
        description="Unique handle, 3-30 alphanumeric characters"
    )
    email: EmailStr = Field(..., description="Valid email address for authentication")
    full_name: Optional[str] = Field(
        None,
        min_length=2,
        max_length=100,
        validation_alias=AliasChoices("full_name", "fullName"),
        description="User's display name"
    )


class UserCreate(UserBase):
    """
    Schema for user registration.
    Includes the plain text password which will be hashed by the security service.
    """
    password: str = Field(..., min_length=6, description="Password, at least 6 characters")


class UserResponse(BaseModel):
    """
    Schema for returning user data to the client.
    Strictly excludes the hashed_password.
    """
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        """
        Tells Pydantic to read the data even if it is not a dict,
        but an ORM model (SQLAlchemy).
        """
        from_attributes = True


class UserUpdate(BaseModel):
    """
    Schema for updating the authenticated user's profile.
    """
    full_name: Optional[str] = Field(
        None,
        min_length=2,
        max_length=100,
        validation_alias=AliasChoices("full_name", "fullName"),
    )
    avatar_url: Optional[str] = Field(
        None,
        max_length=500,
        validation_alias=AliasChoices("avatar_url", "avatarUrl"),
    )
    password: Optional[str] = Field(
        None,
        min_length=6,
        description="New password for the user. Leave blank to keep the current password."
    )


class AuthResponse(Token):
    """Returned by register and login: the user plus a fresh bearer token."""
    user: UserResponse


class VerifyResponse(BaseModel):
    valid: bool = True
    user: UserResponse
