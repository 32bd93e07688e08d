"""
@file: users.py
@description:
Pydantic schemas for registration, profiles and the current user.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cloude.core.auth import AuthenticatedUser


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    status: str = "success"
    message: str
    user_id: Optional[str] = None


class ProfileOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    storage_used: int = 0
    storage_limit: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class MeResponse(BaseModel):
    user: AuthenticatedUser
    profile: ProfileOut
