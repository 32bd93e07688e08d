"""
@file: profile_service.py
@description:
Service functions for user profiles and storage quota bookkeeping in the
Supabase `profiles` table.

Key features:
- Lazy profile creation: a profile is created on first access with the
  default quota
- Storage accounting: `storage_used` is recomputed from the user's
  non-deleted files after every upload and delete
- Usage reporting for the storage widget

@dependencies:
- supabase: Client and SupabaseException
- cloude.core.config: Default quota
- cloude.core.logger: For logging

@notes:
- The usage figure is recomputed rather than incremented, so a failed
  recount heals on the next successful one.
"""

from typing import Any, Dict, Optional

from supabase import Client, SupabaseException

from cloude.core.config import settings
from cloude.core.exceptions import QuotaExceededError, ResourceNotFoundError
from cloude.core.logger import setup_logger
from cloude.schemas.files import StorageUsage

# Initialize logger
logger = setup_logger("cloude.services.profile_service")

PROFILES_TABLE = "profiles"
FILES_TABLE = "files"


def ensure_profile(client: Client, user_id: str, full_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the user's profile, creating it with the default quota if missing.

    Args:
        client: Service-role Supabase client
        user_id: Profile owner
        full_name: Optional display name for a newly created profile

    Returns:
        Dict[str, Any]: The profile row

    Raises:
        SupabaseException: If the lookup or insertion fails
    """
    try:
        response = client.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1).execute()
        if response.data:
            return response.data[0]

        logger.info(f"Creating profile for user {user_id}")
        record = {
            "id": user_id,
            "full_name": full_name,
            "avatar_url": None,
            "storage_used": 0,
            "storage_limit": settings.DEFAULT_STORAGE_LIMIT,
        }
        created = client.table(PROFILES_TABLE).insert(record).execute()
        if not created.data:
            raise SupabaseException("Profile insertion returned no data")
        return created.data[0]
    except SupabaseException:
        raise
    except Exception as e:
        logger.error(f"Failed to load profile for user {user_id}: {str(e)}")
        raise SupabaseException(f"Failed to load user profile: {str(e)}")


def update_profile(client: Client, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Update editable profile fields (full_name, avatar_url).

    Fields set to None in `updates` are left untouched.

    Raises:
        ResourceNotFoundError: If the profile does not exist
        SupabaseException: If the update fails
    """
    changes = {key: value for key, value in updates.items() if value is not None}
    profile = ensure_profile(client, user_id)
    if not changes:
        return profile

    try:
        response = client.table(PROFILES_TABLE).update(changes).eq("id", user_id).execute()
    except Exception as e:
        logger.error(f"Failed to update profile {user_id}: {str(e)}")
        raise SupabaseException(f"Failed to update profile: {str(e)}")

    if not response.data:
        raise ResourceNotFoundError("User profile not found")

    logger.info(f"Updated profile {user_id}: {sorted(changes)}")
    return response.data[0]


def recalculate_storage_used(client: Client, user_id: str) -> int:
    """
    Recompute `storage_used` as the total size of the user's non-deleted files.

    Returns:
        int: The new usage in bytes

    Raises:
        SupabaseException: If reading the files or updating the profile fails
    """
    logger.info(f"Updating storage usage for user {user_id}")
    try:
        response = (
            client.table(FILES_TABLE)
            .select("size")
            .eq("user_id", user_id)
            .eq("is_deleted", False)
            .execute()
        )
        total_size = sum(row.get("size") or 0 for row in response.data or [])
        logger.debug(f"Calculated total storage: {total_size} bytes for user {user_id}")

        client.table(PROFILES_TABLE).update({"storage_used": total_size}).eq("id", user_id).execute()
        return total_size
    except Exception as e:
        logger.error(f"Failed to update storage_used for user {user_id}: {str(e)}")
        raise SupabaseException(f"Failed to update storage usage: {str(e)}")


def refresh_storage_used(client: Client, user_id: str) -> None:
    """
    Recount usage after a mutation that already succeeded.

    A failed recount is logged and swallowed; the next mutation recounts again.
    """
    try:
        recalculate_storage_used(client, user_id)
    except SupabaseException as e:
        logger.warning(f"Storage usage for user {user_id} is stale: {e.message}")


def get_storage_usage(client: Client, user_id: str) -> StorageUsage:
    """
    Report quota usage, creating the profile on first access.

    Returns:
        StorageUsage: used, total, available and percentage
    """
    profile = ensure_profile(client, user_id)
    used = int(profile.get("storage_used") or 0)
    total = int(profile.get("storage_limit") or settings.DEFAULT_STORAGE_LIMIT)
    percentage = round(used / total * 100, 2) if total else 0.0

    return StorageUsage(
        used=used,
        total=total,
        available=max(total - used, 0),
        percentage=percentage,
    )


def check_quota(client: Client, user_id: str, incoming_size: int) -> None:
    """
    Reject an upload that would push the user over their quota.

    Raises:
        QuotaExceededError: If used + incoming_size exceeds the limit
    """
    usage = get_storage_usage(client, user_id)
    if usage.used + incoming_size > usage.total:
        logger.warning(
            f"Quota exceeded for user {user_id}: {usage.used} + {incoming_size} > {usage.total}"
        )
        raise QuotaExceededError("Storage quota exceeded")


__all__ = [
    "ensure_profile",
    "update_profile",
    "recalculate_storage_used",
    "refresh_storage_used",
    "get_storage_usage",
    "check_quota",
]
