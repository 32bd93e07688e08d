"""
@file: file_service.py
@description:
Service functions for stored files: object upload to Supabase Storage plus
metadata rows in the Supabase `files` table.

Key features:
- Upload: stores the object under `{user_id}/{epoch_millis}-{name}`, inserts
  metadata, and removes the object again if the insert fails
- Listing: folder contents, sub-folders first, then files newest first
- Rename, move and soft delete, always scoped by user_id
- Signed download URLs with a short lifetime
- Storage usage recomputed after uploads and deletes

@dependencies:
- supabase: Client and SupabaseException
- cloude.services.folder_service: Folder ownership checks and listings
- cloude.services.profile_service: Quota checks and usage accounting
- cloude.core.logger: For logging

@notes:
- `name` is the display name and is what rename changes; `original_name`
  keeps the name the file was uploaded with.
"""

import time
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from supabase import Client, SupabaseException

from cloude.core.config import settings
from cloude.core.exceptions import (
    ResourceNotFoundError,
    ValidationFailedError,
)
from cloude.core.logger import setup_logger
from cloude.services import folder_service, profile_service

# Initialize logger
logger = setup_logger("cloude.services.file_service")

FILES_TABLE = "files"
DEFAULT_MIME_TYPE = "application/octet-stream"


def build_storage_path(user_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build the object key for an upload: `{user_id}/{epoch_millis}-{basename}`.

    Directory components in the client-supplied name are discarded.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    basename = PurePosixPath(filename.replace("\\", "/")).name
    return f"{user_id}/{timestamp_ms}-{basename}"


def public_url(client: Client, storage_path: str) -> str:
    return client.storage.from_(settings.STORAGE_BUCKET).get_public_url(storage_path)


def _with_url(client: Client, row: Dict[str, Any]) -> Dict[str, Any]:
    return {**row, "type": "file", "url": public_url(client, row["storage_path"])}


def get_file(client: Client, user_id: str, file_id: str) -> Dict[str, Any]:
    """
    Fetch a non-deleted file owned by the user.

    Raises:
        ResourceNotFoundError: If no such file exists for the user
        SupabaseException: If the query fails
    """
    try:
        response = (
            client.table(FILES_TABLE)
            .select("*")
            .eq("id", file_id)
            .eq("user_id", user_id)
            .eq("is_deleted", False)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to fetch file {file_id}: {str(e)}")
        raise SupabaseException(f"Failed to fetch file: {str(e)}")

    if not response.data:
        raise ResourceNotFoundError("File not found")
    return response.data[0]


def upload_file(
    client: Client,
    user_id: str,
    filename: str,
    content: bytes,
    content_type: Optional[str] = None,
    folder_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Store a file in Supabase Storage and record its metadata.

    Args:
        client: Service-role Supabase client
        user_id: Owner of the file
        filename: Name the client uploaded the file with
        content: File bytes
        content_type: MIME type reported by the client
        folder_id: Target folder, the root when None

    Returns:
        Dict[str, Any]: The metadata row with `type` and public `url`

    Raises:
        ValidationFailedError: If the file name is empty
        ResourceNotFoundError: If the target folder does not exist
        QuotaExceededError: If the upload would exceed the user's quota
        SupabaseException: If the storage upload or metadata insert fails
    """
    if not filename or not filename.strip():
        raise ValidationFailedError("No file provided")

    if folder_id:
        folder_service.get_folder(client, user_id, folder_id)

    size = len(content)
    mime_type = content_type or DEFAULT_MIME_TYPE
    profile_service.check_quota(client, user_id, size)

    storage_path = build_storage_path(user_id, filename)
    bucket = client.storage.from_(settings.STORAGE_BUCKET)
    logger.info(f"Uploading file: {filename} ({size} bytes) for user {user_id}, folder {folder_id or 'root'}")

    try:
        bucket.upload(storage_path, content, file_options={"content-type": mime_type, "upsert": "false"})
    except Exception as e:
        logger.error(f"Upload failed for {storage_path}: {str(e)}")
        raise SupabaseException(f"Failed to upload file to storage: {str(e)}")
    logger.debug(f"File uploaded to Storage: {storage_path}")

    record = {
        "name": filename,
        "original_name": filename,
        "size": size,
        "mime_type": mime_type,
        "storage_path": storage_path,
        "folder_id": folder_id,
        "user_id": user_id,
    }

    try:
        response = client.table(FILES_TABLE).insert(record).execute()
        if not response.data:
            raise SupabaseException("insertion returned no data")
    except Exception as e:
        logger.error(f"DB insert failed for {storage_path}: {str(e)}")
        try:
            bucket.remove([storage_path])
        except Exception as cleanup_error:
            logger.error(f"Could not remove orphaned object {storage_path}: {str(cleanup_error)}")
        raise SupabaseException(f"Failed to save file metadata: {str(e)}")

    row = response.data[0]
    logger.info(f"File metadata saved: {row['id']}")

    profile_service.refresh_storage_used(client, user_id)
    return _with_url(client, row)


def list_folder_contents(client: Client, user_id: str, folder_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    List a folder's sub-folders followed by its files (newest first).

    Args:
        client: Service-role Supabase client
        user_id: Owner of the listing
        folder_id: Folder to list, the root when None

    Returns:
        List[Dict[str, Any]]: Folder rows (type "folder") then file rows
        (type "file", with public url)

    Raises:
        SupabaseException: If a query fails
    """
    logger.info(f"Fetching files and folders for user {user_id}, folder {folder_id or 'root'}")
    folders = folder_service.list_folders(client, user_id, folder_id)

    try:
        query = (
            client.table(FILES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("is_deleted", False)
        )
        if folder_id:
            query = query.eq("folder_id", folder_id)
        else:
            query = query.is_("folder_id", "null")

        response = query.order("created_at", desc=True).execute()
    except Exception as e:
        logger.error(f"Failed to fetch files for user {user_id}: {str(e)}")
        raise SupabaseException(f"Failed to fetch files: {str(e)}")

    files = [_with_url(client, row) for row in response.data or []]
    logger.info(f"Fetched {len(files)} files and {len(folders)} folders for user {user_id}")
    return folders + files


def _update_file(client: Client, user_id: str, file_id: str, changes: Dict[str, Any], action: str) -> Dict[str, Any]:
    try:
        response = (
            client.table(FILES_TABLE)
            .update(changes)
            .eq("id", file_id)
            .eq("user_id", user_id)
            .eq("is_deleted", False)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to {action} file {file_id}: {str(e)}")
        raise SupabaseException(f"Failed to {action} file: {str(e)}")

    if not response.data:
        raise ResourceNotFoundError("File not found")
    return response.data[0]


def rename_file(client: Client, user_id: str, file_id: str, new_name: str) -> Dict[str, Any]:
    """
    Change a file's display name.

    Raises:
        ValidationFailedError: If the new name is blank
        ResourceNotFoundError: If the file does not exist
    """
    cleaned = (new_name or "").strip()
    if not cleaned:
        raise ValidationFailedError("Name is required")

    row = _update_file(client, user_id, file_id, {"name": cleaned}, "rename")
    logger.info(f"File renamed: {file_id} to {cleaned}")
    return _with_url(client, row)


def move_file(client: Client, user_id: str, file_id: str, target_folder_id: Optional[str]) -> Dict[str, Any]:
    """
    Move a file into another folder, or to the root when `target_folder_id` is None.

    Raises:
        ResourceNotFoundError: If the file or the target folder does not exist
    """
    if target_folder_id:
        folder_service.get_folder(client, user_id, target_folder_id)

    row = _update_file(client, user_id, file_id, {"folder_id": target_folder_id}, "move")
    logger.info(f"File moved: {file_id} to folder {target_folder_id or 'root'}")
    return _with_url(client, row)


def delete_file(client: Client, user_id: str, file_id: str) -> None:
    """
    Soft-delete a file and recompute the user's storage usage.

    The stored object is kept; only the metadata row is flagged.

    Raises:
        ResourceNotFoundError: If the file does not exist
    """
    get_file(client, user_id, file_id)
    _update_file(
        client,
        user_id,
        file_id,
        {"is_deleted": True, "deleted_at": datetime.now(timezone.utc).isoformat()},
        "delete",
    )
    logger.info(f"File marked as deleted: {file_id}")
    profile_service.refresh_storage_used(client, user_id)


def get_download_url(client: Client, user_id: str, file_id: str) -> str:
    """
    Create a signed download URL valid for SIGNED_URL_EXPIRES_IN seconds.

    Raises:
        ResourceNotFoundError: If the file does not exist
        SupabaseException: If Supabase cannot sign the URL
    """
    row = get_file(client, user_id, file_id)
    try:
        signed = client.storage.from_(settings.STORAGE_BUCKET).create_signed_url(
            row["storage_path"], settings.SIGNED_URL_EXPIRES_IN
        )
    except Exception as e:
        logger.error(f"Failed to sign URL for {row['storage_path']}: {str(e)}")
        raise SupabaseException(f"Failed to generate download URL: {str(e)}")

    # storage3 has used both spellings
    url = signed.get("signedUrl") or signed.get("signedURL")
    if not url:
        raise SupabaseException("Failed to generate download URL: empty response")
    return url
