# storefront/schemas/user.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

from storefront.models.users import Role
from storefront.schemas.common import Envelope, ORMBase


def _normalize_email(value: str) -> str:
    return value.strip().lower()


# Shared properties for user payloads
class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("The name field is required.")
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        v = _normalize_email(v)
        if len(v) > 255:
            raise ValueError("The email may not be greater than 255 characters.")
        return v


# Self-service registration; the role is never taken from the request
class RegisterRequest(UserBase):
    password: str = Field(..., min_length=8)
    password_confirmation: str

    @field_validator("password_confirmation")
    @classmethod
    def _passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if v != info.data.get("password"):
            raise ValueError("The password confirmation does not match.")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return _normalize_email(v)


# Admin creates an account with an explicit role
class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    role: Role


# Admin edits an account; password is only changed when provided
class UserUpdate(UserBase):
    role: Role
    password: Optional[str] = Field(None, min_length=8)


# Profile edit by the account owner; role is not accepted here
class ProfileUpdate(UserBase):
    password: Optional[str] = Field(None, min_length=8)


class UserOut(ORMBase):
    id: int
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserResponse(Envelope):
    data: UserOut


class UserListResponse(Envelope):
    data: List[UserOut]


class UserSaved(Envelope):
    message: str
    user: UserOut


# Schema for JWT authentication token response
class Token(Envelope):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
