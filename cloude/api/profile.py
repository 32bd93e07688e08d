"""
@file: profile.py
@description:
Profile endpoints for the current user.

Routes:
- GET /api/profile : the user's profile (created on first access)
- PUT /api/profile : update full_name and/or avatar_url
"""

from fastapi import APIRouter, Depends
from supabase import Client, SupabaseException

from cloude.core.auth import AuthenticatedUser, get_current_user
from cloude.core.exceptions import raise_for_service_error
from cloude.db.supabase_client import get_supabase_admin
from cloude.schemas.users import ProfileOut, ProfileUpdate
from cloude.services import profile_service

router = APIRouter()


@router.get("", response_model=ProfileOut, tags=["Profile"])
def get_profile(
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> ProfileOut:
    try:
        return profile_service.ensure_profile(client, current_user.id)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to load profile")


@router.put("", response_model=ProfileOut, tags=["Profile"])
def update_profile(
    body: ProfileUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> ProfileOut:
    try:
        return profile_service.update_profile(client, current_user.id, body.model_dump())
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to update profile")
